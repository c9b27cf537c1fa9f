"""Batch plastic classification over a folder of images."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .classifier import PlasticClassifier
from .config import get_settings
from .detection import MultiObjectDetector
from .eco_score import eco_score_for_object
from .errors import PlasticRecognitionError

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".bmp", ".gif", ".tiff", ".webp"}


def analyze_images_in_folder(
    folder_path: str,
    detect_multiple: bool = False,
    detector: Optional[MultiObjectDetector] = None,
) -> Dict[str, dict]:
    """Classify every image in ``folder_path``.

    Args:
        folder_path: Folder containing the images.
        detect_multiple: Run region-based multi-object detection instead of a
            single whole-image classification.
        detector: Detector to use; one is built from settings when omitted.

    Returns:
        Mapping of image filename to its detections, or to an ``error`` entry.
    """
    folder = Path(folder_path)
    if not folder.is_dir():
        logger.error("Folder does not exist: %s", folder_path)
        return {}

    image_files = sorted(f for f in folder.iterdir() if f.is_file() and f.suffix.lower() in IMAGE_EXTENSIONS)
    if not image_files:
        logger.warning("No images found in %s", folder_path)
        return {}

    if detector is None:
        settings = get_settings()
        detector = MultiObjectDetector(PlasticClassifier(settings), settings=settings)
    logger.info("Analyzing %d image(s) in %s", len(image_files), folder)

    all_results: Dict[str, dict] = {}
    for idx, image_file in enumerate(image_files, 1):
        logger.info("[%d/%d] %s", idx, len(image_files), image_file.name)
        try:
            if detect_multiple:
                objects = list(detector.detect(str(image_file), image_file.name).objects)
            else:
                objects = [detector.classifier.detect_object(str(image_file), image_file.name)]
        except PlasticRecognitionError as exc:
            logger.error("Failed to analyze %s: %s", image_file.name, exc)
            all_results[image_file.name] = {"error": str(exc)}
            continue

        detections = []
        for obj in objects:
            entry = obj.to_dict()
            eco = eco_score_for_object(obj)
            entry["eco_score"] = {"score": eco.score, "level": eco.level.value}
            detections.append(entry)
        all_results[image_file.name] = {"detections": detections}

    return all_results


def reorganize_results(results: Dict[str, dict], confidence_threshold: float = 0.6) -> dict:
    """Split results into confident detections, uncertain ones and failures."""

    confident: List[dict] = []
    uncertain: List[dict] = []
    failed: List[dict] = []

    for image_name, data in results.items():
        if "error" in data:
            failed.append({"image": image_name, "error": data["error"]})
            continue
        detections = data.get("detections", [])
        if any(d["confidence"] >= confidence_threshold for d in detections):
            confident.append({"image": image_name, "detections": detections})
        else:
            uncertain.append({"image": image_name, "detections": detections})

    return {
        "confident": confident,
        "uncertain": uncertain,
        "failed": failed,
        "summary": {
            "total": len(results),
            "confident_count": len(confident),
            "uncertain_count": len(uncertain),
            "failed_count": len(failed),
            "confidence_threshold": confidence_threshold,
        },
    }


def save_results_to_json(
    results: Dict[str, dict],
    output_file: str = "analysis_results.json",
    confidence_threshold: float = 0.6,
) -> None:
    organized = reorganize_results(results, confidence_threshold)
    with open(output_file, "w", encoding="utf-8") as f:
        json.dump(organized, f, ensure_ascii=False, indent=2)
    logger.info("Results saved to %s", output_file)


def material_counts(results: Dict[str, dict]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for data in results.values():
        for detection in data.get("detections", []):
            counts[detection["material"]] = counts.get(detection["material"], 0) + 1
    return counts


def print_summary(results: Dict[str, dict]) -> None:
    print("\n" + "=" * 60)
    print("Analysis summary")
    print("=" * 60)
    failed = sum(1 for data in results.values() if "error" in data)
    print(f"Images: {len(results)} (failed: {failed})")
    counts = material_counts(results)
    if counts:
        print("\nMaterials detected:")
        for material, count in sorted(counts.items(), key=lambda item: item[1], reverse=True):
            print(f"  - {material}: {count}")
    print("=" * 60)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Classify plastic waste photos in a folder.")
    parser.add_argument("folder", help="Folder with images to analyze")
    parser.add_argument("--multi", action="store_true", help="Detect multiple objects per image")
    parser.add_argument("--output", default="analysis_results.json", help="JSON report path")
    parser.add_argument("--threshold", type=float, default=0.6, help="Confidence threshold for the report")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    results = analyze_images_in_folder(args.folder, detect_multiple=args.multi)
    if not results:
        return 1
    print_summary(results)
    save_results_to_json(results, args.output, args.threshold)
    return 0
