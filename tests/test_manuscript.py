import json

from deepbook.manuscript import (
    BOOK_FILE,
    PARTIAL_FILE,
    STATUS_FILE,
    TITLE_FILE,
    read_status,
    write_manuscript,
)
from deepbook.models import ChapterPlan, ChapterText, Document, PartFragment, RunResult


def _document(title=None):
    ch = ChapterText(plan=ChapterPlan(index=1, outline_text="Plan.", part_count=2))
    ch.append(PartFragment(chapter=1, index=1, text="Margin is borrowed money."))
    return Document(title_block=title, chapters=[ch])


def test_success_writes_book_title_and_status(tmp_path):
    result = RunResult(status="success", document=_document("Futures 101"))
    path = write_manuscript(result, tmp_path, model="deepseek-chat")

    assert path == tmp_path / BOOK_FILE
    assert path.read_text("utf-8").startswith("Futures 101")
    assert (tmp_path / TITLE_FILE).read_text("utf-8") == "Futures 101\n"
    assert not (tmp_path / PARTIAL_FILE).exists()

    status = json.loads((tmp_path / STATUS_FILE).read_text("utf-8"))
    assert status["status"] == "success"
    assert status["model"] == "deepseek-chat"
    assert status["chapters"] == [{
        "num": 1, "parts_planned": 2, "parts_written": 1, "complete": True, "word_count": 4,
    }]
    assert status["total_words"] == 4


def test_failed_run_never_writes_book_txt(tmp_path):
    result = RunResult(status="failed", document=_document(), failed_stage="chapter 2 outline",
                       attempts=5, error="chapter 2 outline failed after 5 attempt(s)")
    path = write_manuscript(result, tmp_path)

    assert path == tmp_path / PARTIAL_FILE
    assert not (tmp_path / BOOK_FILE).exists()
    status = read_status(tmp_path)
    assert status["status"] == "failed"
    assert status["failed_stage"] == "chapter 2 outline"
    assert status["attempts"] == 5


def test_success_clears_stale_partial(tmp_path):
    (tmp_path / PARTIAL_FILE).write_text("old", "utf-8")
    write_manuscript(RunResult(status="success", document=_document()), tmp_path)
    assert not (tmp_path / PARTIAL_FILE).exists()


def test_write_error_is_reported_not_raised(tmp_path):
    blocker = tmp_path / "taken"
    blocker.write_text("a file, not a directory", "utf-8")
    result = RunResult(status="success", document=_document())
    assert write_manuscript(result, blocker / "out") is None
    assert "Margin is borrowed money." in result.document.render()


def test_no_status_means_not_generated_yet(tmp_path):
    assert read_status(tmp_path) is None


def test_untitled_rerun_drops_old_title(tmp_path):
    write_manuscript(RunResult(status="success", document=_document("Old Title")), tmp_path)
    write_manuscript(RunResult(status="success", document=_document()), tmp_path)
    assert not (tmp_path / TITLE_FILE).exists()


def test_failed_rerun_removes_previous_book(tmp_path):
    write_manuscript(RunResult(status="success", document=_document("Old Title")), tmp_path)
    failed = RunResult(status="failed", document=_document(), failed_stage="outline", attempts=10)
    write_manuscript(failed, tmp_path)

    assert not (tmp_path / BOOK_FILE).exists()
    assert not (tmp_path / TITLE_FILE).exists()
    assert (tmp_path / PARTIAL_FILE).exists()
    assert read_status(tmp_path)["status"] == "failed"
