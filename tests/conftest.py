"""Pytest configuration for skew_toolkit tests.

Synthetic page images shared by several test modules.
"""

import numpy as np
import pytest


def make_stripe_page(width=400, height=300, top=140, bottom=160):
    """White page with one horizontal black stripe (an unskewed text line)."""
    page = np.full((height, width), 255, dtype=np.uint8)
    page[top:bottom] = 0
    return page


def make_skewed_edge(width=400, height=300, angle=5.0):
    """Black region above a straight baseline rising to the right by ``angle`` degrees."""
    ys, xs = np.mgrid[0:height, 0:width]
    xc = xs - width // 2
    yc = ys - height // 2
    page = np.full((height, width), 255, dtype=np.uint8)
    page[yc < -np.tan(np.radians(angle)) * xc] = 0
    return page


@pytest.fixture
def blank_page():
    return np.full((300, 400), 255, dtype=np.uint8)


@pytest.fixture
def stripe_page():
    return make_stripe_page()


@pytest.fixture
def noisy_page():
    rng = np.random.default_rng(1234)
    return rng.choice(np.array([0, 40, 180, 255], dtype=np.uint8), size=(48, 64))
