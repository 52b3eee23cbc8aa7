import logging
from datetime import date
from typing import TYPE_CHECKING, Any, Optional, Union

from attrs import define, field

from tabview.column import stringify
from tabview.constants import BOOL_ALIASES, ColumnKind, Row
from tabview.utils import calendar_day, is_day_string, iso_day, locale_day

if TYPE_CHECKING:
    from tabview.column import Column  # noqa: F401

logger = logging.getLogger(__name__)


def to_bool(value: Any) -> Optional[bool]:
    """Interpret a value as a boolean, using the known aliases.

    Returns:
        The boolean or None if the value has no boolean meaning.
    """
    if isinstance(value, bool):
        return value
    return BOOL_ALIASES.get(stringify(value).strip().lower())


@define
class KindOp:
    """Base class for the per-kind column filter operators.

    Attributes:
        kind: The kind of column the operator applies to.
    """

    kind: ColumnKind

    def matches(self, column: "Column", row: Row, term: str) -> bool:
        """Tell if the row satisfies the filter term for this column.

        Args:
            column: The column being filtered.
            row: The row to test.
            term: The trimmed, non-blank filter value.
        """
        raise NotImplementedError()


@define
class TextOp(KindOp):
    """Case-insensitive substring match on the text of the value."""

    kind: ColumnKind = field(default=ColumnKind.TEXT)

    def matches(self, column: "Column", row: Row, term: str) -> bool:
        value = column.value(row)
        if value is None:
            return False
        return term.lower() in stringify(value).lower()


@define
class NumberOp(TextOp):
    """Numbers are filtered the same way text is."""

    kind: ColumnKind = field(default=ColumnKind.NUMBER)


@define
class DateOp(KindOp):
    """Date filtering.

    A `YYYY-MM-DD` term matches the rows that fall on that calendar day,
    regardless of the time of day. Any other term is searched inside both
    the `M/D/YYYY` and the `YYYY-MM-DD` forms of the value. Values or terms
    that cannot be parsed never match.
    """

    kind: ColumnKind = field(default=ColumnKind.DATE)

    def matches(self, column: "Column", row: Row, term: str) -> bool:
        value = column.value(row)
        if value is None:
            return False
        try:
            if is_day_string(term):
                return calendar_day(value) == date.fromisoformat(term)
            term = term.lower()
            return term in locale_day(value).lower() or term in iso_day(value)
        except (TypeError, ValueError, OverflowError) as e:
            logger.debug(
                "Date filter %r on %s does not apply to %r: %s",
                term,
                column.key,
                value,
                e,
            )
            return False


@define
class BoolOp(KindOp):
    """Boolean filtering.

    Known aliases (`active`, `inactive`, `true`, `false`...) and the
    `true_str`/`false_str` of the column are mapped to a boolean before the
    comparison. Other terms are compared exactly with the text of the value.
    """

    kind: ColumnKind = field(default=ColumnKind.BOOLEAN)

    def matches(self, column: "Column", row: Row, term: str) -> bool:
        value = column.value(row)
        if value is None:
            return False
        lowered = term.lower()
        wanted = BOOL_ALIASES.get(lowered)
        if wanted is None:
            if lowered == column.true_str.lower():
                wanted = True
            elif lowered == column.false_str.lower():
                wanted = False
        if wanted is None:
            return stringify(value).lower() == lowered
        return to_bool(value) is wanted


@define
class EnumOp(KindOp):
    """Exact, case-insensitive match against the value or its label."""

    kind: ColumnKind = field(default=ColumnKind.ENUM)

    def matches(self, column: "Column", row: Row, term: str) -> bool:
        value = column.value(row)
        if value is None:
            return False
        lowered = term.lower()
        if stringify(value).lower() == lowered:
            return True
        for enum_value, label in column.enum_values:
            if enum_value == value and str(label).lower() == lowered:
                return True
        return False


@define
class KindOpRegistry:
    """Registry for the per-kind operators.

    Attributes:
        _registry: The operators keyed by column kind.
    """

    _registry: dict[str, KindOp] = field(factory=dict, repr=False)

    def __attrs_post_init__(self) -> None:
        """Initialize the registry with one operator per column kind."""
        self._registry = {
            ColumnKind.TEXT: TextOp(),
            ColumnKind.NUMBER: NumberOp(),
            ColumnKind.DATE: DateOp(),
            ColumnKind.BOOLEAN: BoolOp(),
            ColumnKind.ENUM: EnumOp(),
        }

    def __getitem__(self, key: Union[ColumnKind, str]) -> KindOp:
        """Return the operator for a kind.

        Args:
            key: The kind of the column.

        Returns:
            The operator.
        """
        return self._registry[key]

    def get(self, key: Union[ColumnKind, str]) -> Union[KindOp, None]:
        """Return the operator for a kind or None if there is none."""
        return self._registry.get(key, None)

    def register(self, op: KindOp) -> None:
        """Replace the operator used for the kind of `op`."""
        self._registry[op.kind] = op


kind_op_registry = KindOpRegistry()
