import json
from gettext import gettext as _
from pathlib import Path
from typing import List

from dental_budget.core.annotation import Marker


def read_markers(path: Path) -> List[Marker]:
    """
    Read markers exported by the web client.

    The file holds either a list of markers or ``{"images": [[...], ...]}``
    with one list per image, in which case the position in ``images``
    becomes the image index.
    """
    with Path(path).open("r", encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, list):
        return [Marker.from_dict(item) for item in data]

    if isinstance(data, dict) and isinstance(data.get("images"), list):
        return [
            Marker.from_dict(item, image_index=index)
            for index, items in enumerate(data["images"])
            for item in items
        ]

    raise ValueError(_("Unrecognised markers file: {path}").format(path=path))
