import json
import logging
import sys
from gettext import gettext as _

from dental_budget.cli._markers import read_markers
from dental_budget.core.budget import BudgetEngine, load_catalog
from dental_budget.core.errors import DentalBudgetError

logger = logging.getLogger(__name__)


def format_summary(engine: BudgetEngine) -> str:
    lines = engine.compute_lines()
    plan = engine.current_session_plan()
    width = max([len(_("Treatment"))] + [len(line.treatment_name) for line in lines])

    out = [
        f"{_('Treatment'):<{width}}  {_('Qty'):>4}  {_('Unit'):>10}  {_('Total'):>10}"
    ]
    for line in lines:
        out.append(
            f"{line.treatment_name:<{width}}  {line.count:>4}  "
            f"{line.unit_cost:>10,.2f}  {line.line_total:>10,.2f}"
        )
    out.append(f"{_('Grand total'):<{width}}  {'':>4}  {'':>10}  {engine.grand_total():>10,.2f}")
    out.append(
        _("{count} sessions of {amount:,.2f}").format(
            count=plan.session_count, amount=plan.amount_per_session
        )
    )
    return "\n".join(out)


def handle(args):
    try:
        catalog = load_catalog(args.catalog)
        markers = read_markers(args.markers)
        engine = BudgetEngine(catalog.get_treatment_cost)
        for marker in markers:
            engine.record_marker(marker)
        if args.sessions is not None:
            engine.set_session_count(args.sessions)
    except (DentalBudgetError, OSError, ValueError, KeyError) as e:
        logger.error(str(e))
        sys.exit(1)

    logger.debug("Priced %d markers", len(engine))
    if args.as_json:
        print(json.dumps(engine.summary(), indent=2, ensure_ascii=False))
    else:
        print(format_summary(engine))
