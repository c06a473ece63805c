# flake8: noqa E501

from gettext import gettext as _
from pathlib import Path

COMMAND_DESCRIPTION = _("Draw the markers of an image into a PNG snapshot")


def command(subparser):
    subparser.add_argument("image", type=Path, help=_("Patient image"))
    subparser.add_argument("markers", type=Path, help=_("Markers JSON of the visit"))
    subparser.add_argument("output", type=Path, help=_("Where to save the PNG"))
    subparser.add_argument(
        "-i",
        "--image-index",
        dest="image_index",
        type=int,
        default=0,
        help=_("Only draw markers placed on this image index"),
    )
    subparser.add_argument(
        "--overwrite",
        action="store_true",
        help=_("Overwrite the PNG if it exists"),
    )

    def handle(args):
        from .render import handle as render_handle

        render_handle(args)

    return handle
