import json
import logging
import sys
from gettext import gettext as _
from pathlib import Path

logger = logging.getLogger(__name__)

COMMAND_DESCRIPTION = _("List the treatments of a catalog")


def command(subparser):
    subparser.add_argument(
        "catalog",
        type=Path,
        nargs="?",
        help=_("Treatment catalog JSON (stock palette if omitted)"),
    )
    subparser.add_argument(
        "-a", "--all", dest="show_all", action="store_true",
        help=_("Include inactive treatments"),
    )
    subparser.add_argument(
        "--search", type=str, default="", help=_("Filter by name or description")
    )
    subparser.add_argument(
        "--json", dest="as_json", action="store_true", help=_("Print JSON output")
    )

    def handle(args):
        from dental_budget.core.budget import TreatmentCatalog, load_catalog
        from dental_budget.core.errors import CatalogUnavailableError

        if args.catalog is None:
            catalog = TreatmentCatalog.default()
        else:
            try:
                catalog = load_catalog(args.catalog)
            except CatalogUnavailableError as e:
                logger.error(str(e))
                sys.exit(1)

        entries = catalog.filter_entries(
            search=args.search, is_active=None if args.show_all else True
        )
        if args.as_json:
            print(json.dumps([e.to_record() for e in entries], indent=2, ensure_ascii=False))
            return
        for entry in entries:
            status = "" if entry.is_active else f" ({_('inactive')})"
            print(f"{entry.color}  {entry.unit_cost:>10,.2f}  {entry.name}{status}")

    return handle
