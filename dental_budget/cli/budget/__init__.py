# flake8: noqa E501

from gettext import gettext as _
from pathlib import Path

COMMAND_DESCRIPTION = _("Price the treatments marked on a visit")


def command(subparser):
    subparser.add_argument(
        "catalog", type=Path, help=_("Treatment catalog JSON exported from the store")
    )
    subparser.add_argument("markers", type=Path, help=_("Markers JSON of the visit"))
    subparser.add_argument(
        "-s",
        "--sessions",
        dest="sessions",
        type=int,
        help=_("Number of payment sessions (suggested if omitted)"),
    )
    subparser.add_argument(
        "--json", dest="as_json", action="store_true", help=_("Print JSON output")
    )

    def handle(args):
        from .budget import handle as budget_handle

        budget_handle(args)

    return handle
