"""Tests for folder-based enrollment used by the session runner."""

from __future__ import annotations

from pathlib import Path

import pytest
import pytest_mock
from PIL import Image

from smartattend.face import DescriptorStore, EuclideanMatcher, PixelSampleEncoder
from smartattend.runner import enroll_from_folder, main


def _save(path: Path, color: tuple[int, int, int], stripe: int) -> None:
    image = Image.new("RGB", (40, 40), color=color)
    for y in range(40):
        image.putpixel((stripe, y), (255, 255, 255))
    path.parent.mkdir(parents=True, exist_ok=True)
    image.save(path)


def test_enroll_from_folder_uses_subfolder_names(tmp_path: Path) -> None:
    _save(tmp_path / "CSE001" / "a.png", (10, 10, 10), 5)
    _save(tmp_path / "CSE001" / "b.jpg", (12, 12, 12), 6)
    _save(tmp_path / "CSE002" / "a.png", (10, 10, 10), 30)
    (tmp_path / "CSE002" / "notes.txt").write_text("ignored", encoding="utf-8")
    (tmp_path / "CSE003").mkdir()
    (tmp_path / "CSE003" / "broken.png").write_bytes(b"not an image")

    store = DescriptorStore()
    added = enroll_from_folder(store, PixelSampleEncoder(size=20, stride=1), tmp_path)

    assert added == 3
    assert store.all_student_ids() == {"CSE001", "CSE002"}
    assert len(store.samples_for("CSE001")) == 2


def test_enrolled_folder_images_are_recognised(tmp_path: Path) -> None:
    _save(tmp_path / "CSE002" / "a.png", (10, 10, 10), 30)
    encoder = PixelSampleEncoder(size=20, stride=1)
    store = DescriptorStore()
    enroll_from_folder(store, encoder, tmp_path)

    query = encoder.encode((tmp_path / "CSE002" / "a.png").read_bytes())

    assert EuclideanMatcher(store).match(query).student_id == "CSE002"


@pytest.fixture()
def session_doubles(mocker: pytest_mock.MockerFixture) -> dict[str, object]:
    engine = mocker.patch("smartattend.runner.engine", new=mocker.Mock(dispose=mocker.AsyncMock()))
    mocker.patch("smartattend.runner.init_db", new=mocker.AsyncMock())
    archive = mocker.Mock(save=mocker.AsyncMock(return_value=1), restore=mocker.AsyncMock(return_value=0))
    mocker.patch("smartattend.runner.SqlDescriptorArchive", return_value=archive)
    recorder = mocker.AsyncMock()
    mocker.patch("smartattend.runner.AttendanceRecorder", return_value=recorder)
    return {"engine": engine, "archive": archive, "recorder": recorder}


@pytest.mark.asyncio
async def test_main_with_cycles_records_and_disposes_engine(
    tmp_path: Path,
    session_doubles: dict[str, object],
) -> None:
    _save(tmp_path / "faces" / "CSE002" / "a.png", (10, 10, 10), 30)
    _save(tmp_path / "frames" / "f1.png", (10, 10, 10), 30)

    await main(
        [
            "--enroll-root",
            str(tmp_path / "faces"),
            "--frames",
            str(tmp_path / "frames"),
            "--cycles",
            "2",
        ],
    )

    recorder = session_doubles["recorder"]
    session_doubles["archive"].save.assert_awaited_once()
    assert recorder.await_count == 1
    assert recorder.await_args.args[0].student_id == "CSE002"
    recorder.finish.assert_awaited_once()
    session_doubles["engine"].dispose.assert_awaited_once()


@pytest.mark.asyncio
async def test_main_disposes_engine_when_frames_are_missing(
    tmp_path: Path,
    session_doubles: dict[str, object],
) -> None:
    (tmp_path / "frames").mkdir()

    with pytest.raises(RuntimeError):
        await main(["--frames", str(tmp_path / "frames"), "--cycles", "1"])

    session_doubles["archive"].restore.assert_awaited_once()
    session_doubles["engine"].dispose.assert_awaited_once()
