import pytest
import os


@pytest.fixture
def setup_test_env():
    """Setup test environment variables"""
    original_env = os.environ.copy()

    # Set test environment variables
    os.environ["LLM_API_KEY"] = "test_key_12345"
    os.environ["WHISPER_MODEL_SIZE"] = "base"

    yield

    # Restore original environment
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def speech_bytes():
    """One frame of loud int16 PCM (peak 0.5 of full scale)"""
    import numpy as np
    t = np.linspace(0, 0.1, 1600, endpoint=False)
    return (0.5 * 32767 * np.sin(2 * np.pi * 440 * t)).astype("<i2").tobytes()


@pytest.fixture
def silence_bytes():
    """One frame of int16 PCM below the speech threshold"""
    import numpy as np
    return np.full(1600, 100, dtype="<i2").tobytes()
