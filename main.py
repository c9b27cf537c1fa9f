#!/usr/bin/env python3
"""Batch plastic classification over a folder of images."""

from local_plastic_recognition.batch import main

if __name__ == "__main__":
    raise SystemExit(main())
