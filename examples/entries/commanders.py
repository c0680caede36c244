"""
Commanders working on a plain list, with notifications collected in a second list.
"""

from typing import Any

from commandant import Commander, Supervisor

EXECUTED = "Code has executed."
NOTIFIED = "Hey you! Something happened."
RESULT_MARKER = "The returned object is slightly different"


class AppendEntry(Commander):
    """Append one entry; refuses lists that already hold more than one."""

    argument_types = {"entries": list, "notifications": list}
    errors = {"array_has_multiple": "Array cannot have multiple elements"}

    def prepare(self, entries, **options):
        self.entries = entries

    def check_conditions(self, entries, **options):
        self.condition("array_has_multiple", lambda: len(entries) <= 1)

    def up(self, entries, **options):
        entries.append(EXECUTED)
        return entries

    def down(self):
        self.entries.pop()

    def send_notifications(self, notifications, **options):
        notifications.append(NOTIFIED)


def _run_inline(supervisor: "AppendEntries") -> dict[str, Any]:
    supervisor.inline_step = {"status": "ran"}
    return supervisor.inline_step


def _roll_back_inline(supervisor: "AppendEntries", step: dict[str, Any]) -> None:
    step["status"] = "rolled_back"


class AppendEntries(Supervisor):
    """
    Append through AppendEntry twice (or once), then run an inline step.

    Flags:
        run_twice: run the second AppendEntry (default True)
        raise_error: add a third AppendEntry, which fails its precondition
        raise_inline_error: fail explicitly after every step succeeded
    """

    argument_types = {"entries": list, "notifications": list}
    errors = {
        "array_not_blank": "Array is not empty",
        "custom_failure": "Inline error raised",
    }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.result: list | None = None
        self.inline_step: dict[str, Any] | None = None

    def check_conditions(self, entries, **options):
        self.condition("array_not_blank", not entries)

    def orchestrate(
        self,
        entries,
        notifications,
        run_twice=True,
        raise_error=False,
        raise_inline_error=False,
        **options,
    ):
        args = {"entries": entries, "notifications": notifications}
        self.commander_step(AppendEntry, args)
        if run_twice or raise_error:
            self.commander_step(AppendEntry, args)
        if raise_error:
            self.commander_step(AppendEntry, args)

        self.step(_run_inline, down=_roll_back_inline)

        if raise_inline_error:
            self.fail("custom_failure")

        self.result = [*entries, RESULT_MARKER]
        return self.result
