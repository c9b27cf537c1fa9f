from __future__ import annotations

import json

import cv2
import pytest

from local_plastic_recognition.batch import (
    analyze_images_in_folder,
    main,
    material_counts,
    reorganize_results,
)
from local_plastic_recognition.detection import MultiObjectDetector

from . import image_factory as factory


@pytest.fixture
def image_folder(tmp_path):
    cv2.imwrite(str(tmp_path / "aqua_botol.png"), factory.create_blank_image())
    cv2.imwrite(str(tmp_path / "tray.png"), factory.create_blank_image())
    (tmp_path / "broken.png").write_bytes(b"not really a png")
    (tmp_path / "notes.txt").write_text("ignored")
    return tmp_path


@pytest.fixture(autouse=True)
def _no_model(monkeypatch):
    monkeypatch.delenv("PLASTIC_MODEL_PATH", raising=False)


def test_analyze_folder(image_folder, settings, classifier):
    detector = MultiObjectDetector(classifier, settings=settings)
    results = analyze_images_in_folder(str(image_folder), detector=detector)

    assert sorted(results) == ["aqua_botol.png", "broken.png", "tray.png"]
    assert "error" in results["broken.png"]
    bottle = results["aqua_botol.png"]["detections"][0]
    assert bottle["material"] == "PET"
    assert bottle["name"] == "Plastic Bottle"
    assert bottle["eco_score"] == {"score": 25, "level": "poor"}
    assert results["tray.png"]["detections"][0]["material"] == "PS"


def test_analyze_folder_multi(image_folder, settings, classifier):
    detector = MultiObjectDetector(classifier, settings=settings)
    results = analyze_images_in_folder(str(image_folder), detect_multiple=True, detector=detector)
    assert len(results["tray.png"]["detections"]) >= 1


def test_missing_folder_gives_no_results(tmp_path):
    assert analyze_images_in_folder(str(tmp_path / "nope")) == {}


def test_reorganize_results():
    results = {
        "a.png": {"detections": [{"material": "PET", "confidence": 0.88}]},
        "b.png": {"detections": [{"material": "PS", "confidence": 0.45}]},
        "c.png": {"error": "Unable to decode image payload"},
    }
    organized = reorganize_results(results, confidence_threshold=0.6)
    assert [item["image"] for item in organized["confident"]] == ["a.png"]
    assert [item["image"] for item in organized["uncertain"]] == ["b.png"]
    assert organized["failed"] == [{"image": "c.png", "error": "Unable to decode image payload"}]
    assert organized["summary"] == {
        "total": 3,
        "confident_count": 1,
        "uncertain_count": 1,
        "failed_count": 1,
        "confidence_threshold": 0.6,
    }
    assert material_counts(results) == {"PET": 1, "PS": 1}


def test_main_writes_report(image_folder, tmp_path, capsys):
    output = tmp_path / "report.json"
    assert main([str(image_folder), "--output", str(output)]) == 0
    report = json.loads(output.read_text(encoding="utf-8"))
    assert report["summary"]["total"] == 3
    assert report["summary"]["failed_count"] == 1
    assert "Analysis summary" in capsys.readouterr().out


def test_main_fails_on_empty_folder(tmp_path):
    empty = tmp_path / "empty"
    empty.mkdir()
    assert main([str(empty)]) == 1
