"""
FinEventLab Kind Constants (string discriminators used in catalogs and exports).
"""


class K:
    # === Event types ===
    INCOME = "income"
    EXPENSE = "expense"

    # === Recurrence frequencies ===
    ONCE = "once"
    MONTHLY = "monthly"
    YEARLY = "yearly"

    # === Conditions: cashflow-tagged (pure calendar gates) ===
    DATE_IS = "date-is"
    DATE_IN_RANGE = "date-in-range"

    # === Conditions: balance-tagged (read simulation history) ===
    NETWORTH_IS_ABOVE = "networth-is-above"
    EVENT_HAPPENED = "event-happened"
    INCOME_IS_ABOVE = "income-is-above"

    # === Condition tags ===
    TAG_CASHFLOW = "cashflow"
    TAG_BALANCE = "balance"

    # Portfolio category holding uninvested cash
    CASH_CATEGORY = "cash"

    @classmethod
    def event_types(cls) -> list[str]:
        return [cls.INCOME, cls.EXPENSE]

    @classmethod
    def frequencies(cls) -> list[str]:
        return [cls.ONCE, cls.MONTHLY, cls.YEARLY]

    @classmethod
    def condition_kinds(cls) -> list[str]:
        """Enumerate all known condition kinds (for validation and docs)."""
        return [
            # cashflow
            cls.DATE_IS,
            cls.DATE_IN_RANGE,
            # balance
            cls.NETWORTH_IS_ABOVE,
            cls.EVENT_HAPPENED,
            cls.INCOME_IS_ABOVE,
        ]
