"""Submission type plugins.

Each plugin owns one slice of a submission (online text, files, comment) and
exposes the same small interface. Plugins are registered explicitly in
:func:`default_registry`.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterator

from sqlalchemy.orm import Session

from mod_assign.core.config import DEFAULT_MAX_FILES, DEFAULT_MAX_SUBMISSION_BYTES
from mod_assign.core.context import RequestContext
from mod_assign.core.exceptions import ValidationFailed
from mod_assign.models.assignment import Assignment, AssignPluginConfig
from mod_assign.models.file import FILEAREA_SUBMISSION_FILES
from mod_assign.models.submission import Submission
from mod_assign.services.files import FileStorage, NewFile, check_unique_paths

logger = logging.getLogger(__name__)

SUBTYPE = "submission"


@dataclass
class Setting:
    type: str
    name: str
    description: str
    options: dict[str, Any] = field(default_factory=dict)
    default: Any = None


@dataclass
class FormElement:
    type: str
    name: str
    description: str
    options: dict[str, Any] = field(default_factory=dict)
    default: Any = None


class SubmissionPlugin(ABC):
    name = ""

    def display_name(self) -> str:
        return self.name

    def settings_schema(self) -> list[Setting]:
        return []

    def form_elements(self, assignment: Assignment, submission: Submission | None) -> list[FormElement]:
        return []

    def is_enabled(self, assignment: Assignment) -> bool:
        return False

    def validate(self, assignment: Assignment, data: dict) -> None:
        """Reject data before anything is written. Raises ValidationFailed."""

    @abstractmethod
    def save(self, ctx: RequestContext, assignment: Assignment, submission: Submission, data: dict) -> None:
        ...

    def get_config(self, assignment: Assignment, name: str, default: str | None = None) -> str | None:
        for config in assignment.configs:
            if config.plugin == self.name and config.subtype == SUBTYPE and config.name == name:
                return config.value
        return default

    def save_settings(self, db: Session, assignment: Assignment, values: dict[str, Any]) -> None:
        """Persist the known settings found in values. Caller commits."""
        known = {s.name: s for s in self.settings_schema()}
        for name, value in values.items():
            if name not in known:
                continue
            value = self.clean_setting(known[name], value)
            config = next(
                (c for c in assignment.configs
                 if c.plugin == self.name and c.subtype == SUBTYPE and c.name == name),
                None,
            )
            if config is None:
                config = AssignPluginConfig(plugin=self.name, subtype=SUBTYPE, name=name)
                assignment.configs.append(config)
            config.value = value
        db.flush()

    def clean_setting(self, setting: Setting, value: Any) -> str:
        if setting.type == "checkbox":
            return "1" if value in (True, 1, "1", "true") else "0"
        if setting.type in ("select", "int"):
            try:
                number = int(value)
            except (TypeError, ValueError):
                raise ValidationFailed(f"{self.name}: {setting.name} must be an integer")
            choices = setting.options.get("choices")
            if choices and number not in choices:
                raise ValidationFailed(f"{self.name}: {setting.name} must be one of {choices}")
            if number < 0:
                raise ValidationFailed(f"{self.name}: {setting.name} must not be negative")
            return str(number)
        return str(value)


class OnlineTextPlugin(SubmissionPlugin):
    name = "onlinetext"

    def display_name(self) -> str:
        return "Online text"

    def is_enabled(self, assignment):
        return bool(assignment.online_text_submission)

    def form_elements(self, assignment, submission):
        return [
            FormElement(
                type="editor",
                name="onlinetext",
                description="Online text",
                default={
                    "text": submission.online_text if submission else "",
                    "format": submission.online_format if submission else None,
                },
            )
        ]

    def save(self, ctx, assignment, submission, data):
        editor = data.get("onlinetext")
        if editor is None:
            return
        submission.online_text = editor.get("text") or ""
        fmt = editor.get("format")
        submission.online_format = ctx.preferred_format if fmt is None else fmt


class CommentsPlugin(SubmissionPlugin):
    name = "comments"

    def display_name(self) -> str:
        return "Submission comments"

    def is_enabled(self, assignment):
        return bool(assignment.submission_comments)

    def form_elements(self, assignment, submission):
        return [
            FormElement(
                type="editor",
                name="comment",
                description="Submission comment",
                default={
                    "text": submission.comment_text if submission else "",
                    "format": submission.comment_format if submission else None,
                },
            )
        ]

    def save(self, ctx, assignment, submission, data):
        editor = data.get("comment")
        if editor is None:
            return
        submission.comment_text = editor.get("text") or ""
        fmt = editor.get("format")
        submission.comment_format = ctx.preferred_format if fmt is None else fmt


class FilePlugin(SubmissionPlugin):
    name = "file"

    def display_name(self) -> str:
        return "File submissions"

    def settings_schema(self):
        return [
            Setting(type="checkbox", name="enabled", description="Enabled", default=0),
            Setting(
                type="select",
                name="maxfilesubmissions",
                description="Maximum number of uploaded files",
                options={"choices": list(range(1, 21))},
                default=DEFAULT_MAX_FILES,
            ),
            Setting(
                type="int",
                name="maxsubmissionsizebytes",
                description="Maximum submission size",
                default=DEFAULT_MAX_SUBMISSION_BYTES,
            ),
        ]

    def max_files(self, assignment) -> int:
        return int(self.get_config(assignment, "maxfilesubmissions", str(DEFAULT_MAX_FILES)))

    def max_bytes(self, assignment) -> int:
        return int(self.get_config(assignment, "maxsubmissionsizebytes", str(DEFAULT_MAX_SUBMISSION_BYTES)))

    def is_enabled(self, assignment):
        return self.get_config(assignment, "enabled", "0") == "1" and self.max_files(assignment) > 0

    def form_elements(self, assignment, submission):
        return [
            FormElement(
                type="filemanager",
                name="files",
                description="File submissions",
                options={
                    "maxfiles": self.max_files(assignment),
                    "maxbytes": self.max_bytes(assignment),
                    "accepted_types": "*",
                },
            )
        ]

    def validate(self, assignment, data):
        files = data.get("files")
        if files is None:
            return

        max_files = self.max_files(assignment)
        max_bytes = self.max_bytes(assignment)
        if len(files) > max_files:
            raise ValidationFailed(f"At most {max_files} file(s) may be submitted")
        for f in files:
            if max_bytes and len(f["content"]) > max_bytes:
                raise ValidationFailed(f"File {f['filename']} is larger than {max_bytes} bytes")
        check_unique_paths(self._new_files(files))

    def _new_files(self, files: list[dict]) -> list[NewFile]:
        return [
            NewFile(
                filename=f["filename"],
                content=f["content"],
                filepath=f.get("filepath") or "/",
                mimetype=f.get("mimetype"),
            )
            for f in files
        ]

    def save(self, ctx, assignment, submission, data):
        files = data.get("files")
        if files is None:
            return
        self.validate(assignment, data)

        new_files = self._new_files(files)
        storage = FileStorage(ctx.db)
        storage.replace_area_files(
            assignment.id, FILEAREA_SUBMISSION_FILES, submission.user_id, new_files, ctx.now()
        )
        submission.num_files = len(new_files)


class PluginRegistry:
    def __init__(self):
        self._plugins: dict[str, SubmissionPlugin] = {}

    def register(self, plugin: SubmissionPlugin) -> SubmissionPlugin:
        if not plugin.name:
            raise ValueError("plugin must have a name")
        if plugin.name in self._plugins:
            raise ValueError(f"plugin {plugin.name!r} already registered")
        self._plugins[plugin.name] = plugin
        logger.debug("registered submission plugin %s", plugin.name)
        return plugin

    def get(self, name: str) -> SubmissionPlugin:
        return self._plugins[name]

    def __iter__(self) -> Iterator[SubmissionPlugin]:
        return iter(self._plugins.values())

    def __len__(self) -> int:
        return len(self._plugins)

    def enabled_for(self, assignment: Assignment) -> list[SubmissionPlugin]:
        return [p for p in self if p.is_enabled(assignment)]

    def any_enabled(self, assignment: Assignment) -> bool:
        return any(p.is_enabled(assignment) for p in self)

    def validate(self, assignment: Assignment, data: dict) -> None:
        for plugin in self.enabled_for(assignment):
            plugin.validate(assignment, data)

    def form_elements(self, assignment: Assignment, submission: Submission | None) -> list[dict]:
        sections = []
        for plugin in self.enabled_for(assignment):
            elements = plugin.form_elements(assignment, submission)
            if elements:
                sections.append({"plugin": plugin.name, "header": plugin.display_name(), "elements": elements})
        return sections


def default_registry() -> PluginRegistry:
    registry = PluginRegistry()
    registry.register(OnlineTextPlugin())
    registry.register(FilePlugin())
    registry.register(CommentsPlugin())
    return registry
