from .reflection import TypeDescription, describe_file, describe_type, load_description
from .selection import Copy, MemberSelection, Override
from .synthesizer import GeneratedType, synthesize
