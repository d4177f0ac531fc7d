import io
import logging
import zipfile
from dataclasses import dataclass

from sqlalchemy.orm import Session

from mod_assign.core.exceptions import ValidationFailed
from mod_assign.models.file import COMPONENT, StoredFile

logger = logging.getLogger(__name__)


@dataclass
class NewFile:
    filename: str
    content: bytes
    filepath: str = "/"
    mimetype: str | None = None


def check_unique_paths(files: list[NewFile]) -> None:
    seen = set()
    for f in files:
        path = (f.filepath or "/", f.filename)
        if path in seen:
            raise ValidationFailed(f"Duplicate file {f.filename!r} in {path[0]}")
        seen.add(path)


class FileStorage:
    """Area-scoped blob store keyed by (assignment, component, filearea, item id)."""

    def __init__(self, db: Session):
        self.db = db

    def _area(self, assignment_id: int, filearea: str, item_id: int | None, component: str):
        q = self.db.query(StoredFile).filter(
            StoredFile.assignment_id == assignment_id,
            StoredFile.component == component,
            StoredFile.filearea == filearea,
        )
        if item_id is not None:
            q = q.filter(StoredFile.item_id == item_id)
        return q

    def get_area_files(
        self,
        assignment_id: int,
        filearea: str,
        item_id: int | None = None,
        component: str = COMPONENT,
    ) -> list[StoredFile]:
        return (
            self._area(assignment_id, filearea, item_id, component)
            .order_by(StoredFile.item_id.asc(), StoredFile.filepath.asc(), StoredFile.filename.asc())
            .all()
        )

    def count_area_files(
        self,
        assignment_id: int,
        filearea: str,
        item_id: int,
        component: str = COMPONENT,
    ) -> int:
        return self._area(assignment_id, filearea, item_id, component).count()

    def delete_area_files(
        self,
        assignment_id: int,
        filearea: str | None = None,
        item_id: int | None = None,
        component: str = COMPONENT,
    ) -> int:
        q = self.db.query(StoredFile).filter(
            StoredFile.assignment_id == assignment_id,
            StoredFile.component == component,
        )
        if filearea is not None:
            q = q.filter(StoredFile.filearea == filearea)
        if item_id is not None:
            q = q.filter(StoredFile.item_id == item_id)
        deleted = q.delete(synchronize_session=False)
        logger.debug("deleted %s files from assignment %s area %s", deleted, assignment_id, filearea)
        return deleted

    def replace_area_files(
        self,
        assignment_id: int,
        filearea: str,
        item_id: int,
        files: list[NewFile],
        now: int,
        component: str = COMPONENT,
    ) -> int:
        """Swap the whole area content. Caller commits."""
        self.delete_area_files(assignment_id, filearea, item_id, component)
        for f in files:
            self.db.add(
                StoredFile(
                    assignment_id=assignment_id,
                    component=component,
                    filearea=filearea,
                    item_id=item_id,
                    filepath=f.filepath or "/",
                    filename=f.filename,
                    mimetype=f.mimetype,
                    filesize=len(f.content),
                    content=f.content,
                    time_created=now,
                )
            )
        return len(files)


def archive_to_bytes(files_for_zipping: dict[str, bytes]) -> bytes:
    """Zip a mapping of archive path -> content."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, content in files_for_zipping.items():
            zf.writestr(name, content)
    return buf.getvalue()
