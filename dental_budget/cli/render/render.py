import logging
import os
import sys
from gettext import gettext as _

from dental_budget.cli._markers import read_markers
from dental_budget.core.annotation.utils import (
    compute_render_scale,
    decode_image,
    draw_markers_on_image,
    encode_png,
    resize_to_surface,
)
from dental_budget.core.errors import DentalBudgetError
from dental_budget.utils.config import load_config

logger = logging.getLogger(__name__)


def handle(args):
    cfg = load_config(os.environ)
    assert args.image.exists(), _("Image file must exist")
    if not args.overwrite:
        assert not args.output.exists(), _(
            "Output exists, use --overwrite to ignore this"
        )

    try:
        image = decode_image(args.image.read_bytes())
        markers = [
            m for m in read_markers(args.markers) if m.image_index == args.image_index
        ]
    except (DentalBudgetError, OSError, ValueError, KeyError) as e:
        logger.error(str(e))
        sys.exit(1)

    h, w = image.shape[:2]
    scale = compute_render_scale(w, h, cfg.surface.width, cfg.surface.height)
    rendered = draw_markers_on_image(
        resize_to_surface(image, scale),
        markers,
        radius=int(cfg.marker.radius),
        stroke_width=int(cfg.marker.stroke_width),
        stroke_color=cfg.marker.stroke_color,
    )

    args.output.parent.mkdir(exist_ok=True, parents=True)
    args.output.write_bytes(encode_png(rendered))
    logger.info(
        _("Wrote {count} markers to {path}").format(count=len(markers), path=args.output)
    )
