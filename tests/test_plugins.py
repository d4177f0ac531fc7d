import pytest

from mod_assign.core.exceptions import ValidationFailed
from mod_assign.models.file import FILEAREA_SUBMISSION_FILES
from mod_assign.services.files import FileStorage
from mod_assign.services.external import get_submissions
from mod_assign.services.grading_table import GradingTable
from mod_assign.services.lifecycle import SubmissionLifecycle
from mod_assign.services.plugins import OnlineTextPlugin, PluginRegistry, SubmissionPlugin
from mod_assign.services.store import get_submission


def enable_files(registry, db, assignment, **settings):
    registry.get("file").save_settings(db, assignment, {"enabled": 1, **settings})
    db.commit()


def upload(name: str, content: bytes = b"data") -> dict:
    return {"filename": name, "content": content, "filepath": "/", "mimetype": "text/plain"}


def test_default_registry_order(registry):
    assert [p.name for p in registry] == ["onlinetext", "file", "comments"]
    assert len(registry) == 3


def test_register_rejects_duplicates():
    registry = PluginRegistry()
    registry.register(OnlineTextPlugin())
    with pytest.raises(ValueError):
        registry.register(OnlineTextPlugin())


def test_enabled_plugins_follow_assignment_settings(registry, assignment, db):
    assert [p.name for p in registry.enabled_for(assignment)] == ["onlinetext"]

    assignment.submission_comments = True
    enable_files(registry, db, assignment)
    assert [p.name for p in registry.enabled_for(assignment)] == ["onlinetext", "file", "comments"]


def test_form_elements_are_grouped_per_plugin(registry, assignment, db):
    enable_files(registry, db, assignment, maxfilesubmissions=4)
    sections = registry.form_elements(assignment, None)

    assert [s["plugin"] for s in sections] == ["onlinetext", "file"]
    files = sections[1]["elements"][0]
    assert files.type == "filemanager"
    assert files.options["maxfiles"] == 4


def test_invalid_setting_values(registry, assignment, db):
    plugin = registry.get("file")
    with pytest.raises(ValidationFailed):
        plugin.save_settings(db, assignment, {"maxfilesubmissions": 50})
    with pytest.raises(ValidationFailed):
        plugin.save_settings(db, assignment, {"maxsubmissionsizebytes": "lots"})


def test_file_submission_replaces_area(registry, assignment, db, make_ctx, seed):
    enable_files(registry, db, assignment, maxfilesubmissions=2)
    lifecycle = SubmissionLifecycle(make_ctx(seed.student1_id), assignment, registry)

    lifecycle.save_submission({"files": [upload("a.txt"), upload("b.txt")]})
    submission = lifecycle.save_submission({"files": [upload("c.txt", b"hello")]})

    stored = FileStorage(db).get_area_files(assignment.id, FILEAREA_SUBMISSION_FILES, seed.student1_id)
    assert [f.filename for f in stored] == ["c.txt"]
    assert stored[0].filesize == 5
    assert submission.num_files == 1


def test_too_many_files_rolls_back(registry, assignment, db, make_ctx, seed):
    enable_files(registry, db, assignment, maxfilesubmissions=1)
    lifecycle = SubmissionLifecycle(make_ctx(seed.student1_id), assignment, registry)

    with pytest.raises(ValidationFailed):
        lifecycle.save_submission(
            {
                "onlinetext": {"text": "should not stick", "format": 1},
                "files": [upload("a.txt"), upload("b.txt")],
            }
        )
    submission = get_submission(lifecycle.ctx, assignment, seed.student1_id)
    assert submission is None or submission.online_text == ""
    assert FileStorage(db).count_area_files(assignment.id, FILEAREA_SUBMISSION_FILES, seed.student1_id) == 0


def test_file_size_limit(registry, assignment, db, make_ctx, seed):
    enable_files(registry, db, assignment, maxsubmissionsizebytes=3)
    lifecycle = SubmissionLifecycle(make_ctx(seed.student1_id), assignment, registry)
    with pytest.raises(ValidationFailed):
        lifecycle.save_submission({"files": [upload("big.txt", b"too big")]})


def test_missing_format_uses_preferred(registry, assignment, make_ctx, seed):
    ctx = make_ctx(seed.student1_id)
    ctx.preferred_format = 4
    lifecycle = SubmissionLifecycle(ctx, assignment, registry)
    submission = lifecycle.save_submission({"onlinetext": {"text": "# heading"}})
    assert submission.online_format == 4


def test_rejected_save_leaves_no_submission(registry, assignment, db, make_ctx, seed):
    assignment.submission_drafts = False
    enable_files(registry, db, assignment, maxfilesubmissions=1)
    lifecycle = SubmissionLifecycle(make_ctx(seed.student1_id), assignment, registry)

    with pytest.raises(ValidationFailed):
        lifecycle.save_submission({"files": [upload("a.txt"), upload("b.txt")]})

    assert get_submission(lifecycle.ctx, assignment, seed.student1_id) is None
    teacher = SubmissionLifecycle(make_ctx(seed.teacher_id), assignment, registry)
    assert GradingTable(teacher, filter="require_grading").count() == 0
    result = get_submissions(teacher.ctx, [assignment.id])
    assert result.assignments == []


def test_duplicate_filenames_are_rejected(registry, assignment, db, make_ctx, seed):
    enable_files(registry, db, assignment, maxfilesubmissions=3)
    lifecycle = SubmissionLifecycle(make_ctx(seed.student1_id), assignment, registry)

    with pytest.raises(ValidationFailed):
        lifecycle.save_submission({"files": [upload("a.txt"), upload("a.txt", b"other")]})
    assert get_submission(lifecycle.ctx, assignment, seed.student1_id) is None

    # same name in another folder is fine
    other = {**upload("a.txt"), "filepath": "/drafts/"}
    submission = lifecycle.save_submission({"files": [upload("a.txt"), other]})
    assert submission.num_files == 2


def test_plugin_without_save_cannot_be_created():
    class Incomplete(SubmissionPlugin):
        name = "incomplete"

    with pytest.raises(TypeError):
        Incomplete()
