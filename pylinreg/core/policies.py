"""
Failure policies for batch application.

Defines how a batch reacts to the two recoverable situations it meets
while streaming records:
- a record that lacks a usable value for a needed attribute
- a write-back that fails for one candidate record

Presets:
- DEFAULT: abort on write failure, skip records with missing fields
- LENIENT: skip both, reporting failed write-backs in the result
- STRICT: abort on either
"""

from dataclasses import dataclass

from pylinreg.core.validation import check_choice

WRITE_ERROR_ACTIONS = ('abort', 'skip')
MISSING_FIELD_ACTIONS = ('skip', 'raise')


@dataclass(frozen=True)
class ApplyPolicy:
    """How batch application reacts to failed writes and missing fields."""
    on_write_error: str
    on_missing_field: str
    name: str
    description: str

    def __post_init__(self):
        check_choice(self.on_write_error, WRITE_ERROR_ACTIONS, 'on_write_error')
        check_choice(self.on_missing_field, MISSING_FIELD_ACTIONS, 'on_missing_field')

    @property
    def aborts_on_write_error(self) -> bool:
        return self.on_write_error == 'abort'

    @property
    def raises_on_missing_field(self) -> bool:
        return self.on_missing_field == 'raise'


DEFAULT = ApplyPolicy(
    on_write_error='abort',
    on_missing_field='skip',
    name='default',
    description='Abort on first failed write-back, skip incomplete records',
)

LENIENT = ApplyPolicy(
    on_write_error='skip',
    on_missing_field='skip',
    name='lenient',
    description='Report failed write-backs and keep going',
)

STRICT = ApplyPolicy(
    on_write_error='abort',
    on_missing_field='raise',
    name='strict',
    description='Every record must be complete and every write must succeed',
)

_PRESETS = {p.name: p for p in (DEFAULT, LENIENT, STRICT)}


def select_policy(name: str) -> ApplyPolicy:
    """Look up a preset policy by name."""
    check_choice(name, tuple(_PRESETS), 'policy')
    return _PRESETS[name]
