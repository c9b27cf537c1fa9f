"""Helpers that generate synthetic images for pipeline tests."""

from __future__ import annotations

import base64
import time
from types import SimpleNamespace
from typing import Optional, Tuple

import cv2
import numpy as np

Color = Tuple[int, int, int]


def create_blank_image(width: int = 100, height: int = 100, color: Color = (255, 255, 255)) -> np.ndarray:
    image = np.zeros((height, width, 3), dtype=np.uint8)
    image[:] = color
    return image


def create_transparent_image(width: int = 100, height: int = 100) -> np.ndarray:
    image = np.zeros((height, width, 4), dtype=np.uint8)
    image[:, :, :3] = 120
    return image


def create_noise_image(width: int = 100, height: int = 100, seed: int = 0) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)


def create_stripes_image(width: int = 200, height: int = 200) -> np.ndarray:
    """One-pixel black/white vertical stripes: every neighbour pair is an edge."""

    image = create_blank_image(width, height, color=(0, 0, 0))
    image[:, ::2] = 255
    return image


def create_checkerboard_image(size: int = 200, square: int = 16) -> np.ndarray:
    image = create_blank_image(size, size, color=(0, 0, 0))
    for y in range(0, size, square):
        for x in range(0, size, square):
            if (x // square + y // square) % 2 == 0:
                image[y : y + square, x : x + square] = 255
    return image


def create_split_image(
    left: Color = (0, 0, 255),
    right: Color = (255, 255, 255),
    width: int = 200,
    height: int = 200,
    left_share: float = 0.5,
) -> np.ndarray:
    image = create_blank_image(width, height, color=right)
    image[:, : int(width * left_share)] = left
    return image


def create_bottle_image() -> np.ndarray:
    image = create_blank_image(200, 300, color=(235, 235, 235))
    cv2.rectangle(image, (70, 80), (130, 270), (230, 190, 140), -1)
    cv2.rectangle(image, (88, 30), (112, 80), (200, 60, 20), -1)
    return image


def encode_png(image: np.ndarray) -> bytes:
    ok, buffer = cv2.imencode(".png", image)
    assert ok
    return buffer.tobytes()


def to_data_url(image: np.ndarray) -> str:
    return "data:image/png;base64," + base64.b64encode(encode_png(image)).decode("ascii")


class StubModel:
    """Stands in for an ultralytics classification model."""

    def __init__(self, label: str = "PET", confidence: float = 0.9, delay: float = 0.0, error: Optional[Exception] = None):
        self.label = label
        self.confidence = confidence
        self.delay = delay
        self.error = error
        self.calls = 0

    def __call__(self, image, device="cpu", verbose=False):
        self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        probs = SimpleNamespace(top1=0, top1conf=self.confidence)
        return [SimpleNamespace(probs=probs, names={0: self.label})]
