import numpy as np
import pytest


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)


@pytest.fixture
def small_target() -> tuple[np.ndarray, int, int]:
    width, height = 8, 6
    gen = np.random.default_rng(7)
    image = gen.integers(0, 256, size=(height, width, 4), dtype=np.uint8)
    image[:, :, 3] = 255
    return image.reshape(-1), width, height
