from __future__ import annotations

import mimetypes
from pathlib import Path
from typing import BinaryIO

from casedesk.api.client import FileTuple


class ImageSelection:
    """
    Profile image picked in a form.

    Holds at most one open file. Choosing another image or resetting the
    form releases the previous one.
    """

    def __init__(self) -> None:
        self.path: Path | None = None
        self._fh: BinaryIO | None = None

    def __enter__(self) -> ImageSelection:
        return self

    def __exit__(self, *exc_info) -> None:  # noqa: ANN002
        self.release()

    @property
    def chosen(self) -> bool:
        return self._fh is not None

    @property
    def preview(self) -> str | None:
        return self.path.resolve().as_uri() if self.path is not None else None

    def choose(self, path: str | Path) -> str:
        p = Path(path)
        fh = p.open("rb")
        self.release()
        self.path, self._fh = p, fh
        return self.preview or ""

    def as_upload(self) -> FileTuple:
        if self._fh is None or self.path is None:
            raise RuntimeError("No image chosen")
        self._fh.seek(0)
        content_type = mimetypes.guess_type(self.path.name)[0] or "application/octet-stream"
        return self.path.name, self._fh.read(), content_type

    def release(self) -> None:
        if self._fh is not None:
            self._fh.close()
        self._fh = None
        self.path = None
