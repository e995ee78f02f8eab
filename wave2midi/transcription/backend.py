from __future__ import annotations

import importlib.util
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple


logger = logging.getLogger(__name__)

# runtime name -> (python modules that provide it, model file bundled with basic-pitch)
BACKENDS: Dict[str, Tuple[Tuple[str, ...], str]] = {
    "tf": (("tensorflow",), "nmp"),
    "coreml": (("coremltools",), "nmp.mlpackage"),
    "tflite": (("tflite_runtime", "tensorflow"), "nmp.tflite"),
    "onnx": (("onnxruntime",), "nmp.onnx"),
}

DEFAULT_BACKEND = "default"


@dataclass(frozen=True)
class BackendChoice:
    name: str
    model_path: Optional[Path]
    fell_back: bool = False


def _runtime_available(module_name: str) -> bool:
    try:
        return importlib.util.find_spec(module_name) is not None
    except (ImportError, ValueError):
        return False


def _bundled_model_dir() -> Optional[Path]:
    """
    Locate the ICASSP 2022 model folder inside the installed basic_pitch package.
    """
    spec = importlib.util.find_spec("basic_pitch")
    if spec is None or spec.origin is None:
        return None
    return Path(spec.origin).resolve().parent / "saved_models" / "icassp_2022"


def _default_model_path() -> Optional[Path]:
    try:
        from basic_pitch import ICASSP_2022_MODEL_PATH  # type: ignore
    except Exception as e:
        logger.warning("basic_pitch default model unavailable: %s", e)
        return None
    return Path(ICASSP_2022_MODEL_PATH)


def _backend_for_path(path: Path) -> str:
    suffix = path.suffix.lower()
    if suffix == ".onnx":
        return "onnx"
    if suffix == ".tflite":
        return "tflite"
    if suffix == ".mlpackage":
        return "coreml"
    # SavedModel directories have no suffix
    return "tf" if not suffix else DEFAULT_BACKEND


def configure_backend(preferred: str, checkpoint: Optional[Path] = None) -> BackendChoice:
    """
    Pick the model runtime. Never raises: if the preferred runtime is missing
    (module not installed, model file not shipped), fall back to basic-pitch's
    default model, which it picks from whatever runtime is installed.
    """
    if checkpoint is not None:
        checkpoint = Path(checkpoint)
        return BackendChoice(_backend_for_path(checkpoint), checkpoint, fell_back=False)

    entry = BACKENDS.get(preferred)
    if entry is None:
        logger.warning("Unknown backend %r, using the default", preferred)
    else:
        modules, filename = entry
        model_dir = _bundled_model_dir()
        if not any(_runtime_available(m) for m in modules):
            logger.warning("Backend %r not installed, falling back", preferred)
        elif model_dir is None or not (model_dir / filename).exists():
            logger.warning("No %r model shipped with basic_pitch, falling back", preferred)
        else:
            path = model_dir / filename
            logger.info("Using %s backend (%s)", preferred, path)
            return BackendChoice(preferred, path, fell_back=False)

    path = _default_model_path()
    name = _backend_for_path(path) if path is not None else DEFAULT_BACKEND
    logger.info("Using fallback backend %s (%s)", name, path)
    return BackendChoice(name, path, fell_back=True)
