"""PHP files shared by the patching and synthesis tests."""

MODULE_SOURCE = """<?php

namespace modules;

use Craft;
use yii\\base\\Module as BaseModule;

/**
 * Custom module class.
 */
class Module extends BaseModule
{
    public static function config(): array
    {
        return [
            'components' => [
                'foo' => Foo::class,
            ],
        ];
    }

    public function init(): void
    {
        // Keep   this    comment   exactly.
        parent::init();
    }
}
"""

MODULE_WITH_BUILDER_SOURCE = """<?php

namespace modules;

class Module extends \\yii\\base\\Module
{
    public static function config(): array
    {
        return $this->buildConfig();
    }
}
"""

APP_CONFIG_SOURCE = """<?php

return [
    'id' => 'app',
    'modules' => [
        'my-module' => \\modules\\Module::class,
    ],
    'bootstrap' => ['my-module'],
];
"""

PLUGIN_SOURCE = """<?php

namespace craft\\base;

use Craft;
use craft\\helpers\\Json;
use yii\\base\\Module;

abstract class Plugin extends Module implements PluginInterface
{
    const EDITION_LITE = 'lite';
    const EDITION_PRO = 'pro';

    public ?string $schemaVersion = '1.0.0';
    public bool $hasCpSettings = false;
    public array $components = [Json::class];

    public function init(): void
    {
        parent::init();
    }

    public function setSettings(array $settings, Json $encoder = null): void
    {
        $this->settings = $settings;
    }

    abstract protected function createSettingsModel(): ?Model;
}
"""


def write_php(directory, name: str, content: str) -> str:
    path = directory / name
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(content)
    return str(path)


def read_php(path: str) -> str:
    with open(path, "r", encoding="utf-8", newline="") as f:
        return f.read()
