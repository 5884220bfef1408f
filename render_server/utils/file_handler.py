# utils/file_handler.py

"""
File handling utilities - job-scoped output and temp frame directories
"""

import json
import shutil
from pathlib import Path, PurePosixPath
from typing import Dict, Any


def safe_name(value: str, fallback: str) -> str:
    """Keep only characters that are safe in a file name"""
    name = "".join(c for c in value if c.isalnum() or c in ('-', '_'))[:60]
    return name or fallback


def safe_stem(asset: str) -> str:
    """Filesystem-safe stem of an asset name"""
    return safe_name(PurePosixPath(asset.replace("\\", "/")).stem, "model")


class RenderStorage:
    """Outputs live under <renders_dir>/<job_id>/, frames under <temp_dir>/<job_id>/frames/."""

    def __init__(self, renders_dir: str, temp_dir: str):
        self.renders_dir = Path(renders_dir)
        self.temp_dir = Path(temp_dir)

    def setup_directories(self):
        for dir_path in (self.renders_dir, self.temp_dir):
            dir_path.mkdir(parents=True, exist_ok=True)

    def job_output_dir(self, job_id: str) -> Path:
        job_dir = self.renders_dir / job_id
        job_dir.mkdir(parents=True, exist_ok=True)
        return job_dir

    def job_temp_root(self, job_id: str) -> Path:
        return self.temp_dir / job_id

    def job_frame_dir(self, job_id: str) -> Path:
        frame_dir = self.job_temp_root(job_id) / "frames"
        frame_dir.mkdir(parents=True, exist_ok=True)
        return frame_dir

    def remove_job_temp(self, job_id: str) -> None:
        shutil.rmtree(self.job_temp_root(job_id), ignore_errors=True)

    def output_path(self, job_id: str, asset: str, label: str, extension: str) -> Path:
        return self.job_output_dir(job_id) / f"{safe_stem(asset)}_{safe_name(label, 'view')}.{extension}"

    def save_artifact(self, path: Path, data: bytes) -> int:
        with open(path, 'wb') as f:
            f.write(data)
        return len(data)

    def save_manifest(self, job_id: str, manifest: Dict[str, Any]) -> str:
        filepath = self.job_output_dir(job_id) / "manifest.json"

        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(manifest, f, indent=2, ensure_ascii=False, default=str)

        return str(filepath)
