"""
Error classes for FinEventLab.

This module defines the exception raised when events, recurrences, conditions
or dates are constructed from invalid input.
"""


class ConfigError(Exception):
    """
    Configuration error while building events, conditions or dates.

    This exception is raised at construction time, before any simulation runs,
    whenever a caller hands the model a value it cannot represent faithfully.

    **Common Causes:**
    - Recurrence or date-range whose end date lies before its start date
    - Negative event amounts (amounts are magnitudes, the sign comes from the type)
    - Month outside 1-12 or day outside 1-31
    - Unknown event type, recurrence frequency or condition kind

    **Example Usage:**
        ```python
        from fineventlab.core.errors import ConfigError
        from fineventlab.core.events import make_recurring
        from fineventlab.core.local_date import LocalDate

        try:
            make_recurring(
                "Rent",
                1200,
                "expense",
                "monthly",
                LocalDate(2025, 6, 1),
                LocalDate(2025, 1, 1),  # ends before it starts
            )
        except ConfigError as e:
            print(f"Configuration error: {e}")
        ```

    **When to Use:**
    - In factories and ``__post_init__`` hooks of the event model
    - When parsing dates and kinds from external input
    """

    pass
