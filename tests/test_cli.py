"""
Unit tests for the command-line interface
"""

import json
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

import capture.camera
import pipelines
from cli import ExitCode, _build_pose_engine, build_parser, main
from pipelines import PoseEngine

from conftest import FakeCamera, FakeInferenceEngine


class TestParser:
    """Tests for argument parsing"""

    def test_no_command_prints_help(self, capsys):
        """Test running without a command"""
        # Act
        code = main([])

        # Assert
        assert code == ExitCode.SUCCESS.value
        assert "PostureSense" in capsys.readouterr().out

    def test_track_defaults(self):
        """Test track options"""
        # Act
        args = build_parser().parse_args(["track", "--seconds", "5", "--camera-index", "2"])

        # Assert
        assert args.seconds == 5.0
        assert args.camera_index == 2
        assert args.model is None
        assert args.yuyv is False
        assert args.acceleration == "cpu"

    def test_acceleration_choice(self):
        """Test serve accepts an accelerator and rejects unknown ones"""
        # Act
        args = build_parser().parse_args(["serve", "--acceleration", "cuda"])

        # Assert
        assert args.acceleration == "cuda"
        with pytest.raises(SystemExit):
            build_parser().parse_args(["serve", "--acceleration", "tpu"])

    def test_serve_log_file(self):
        """Test --log-file with and without a name"""
        # Act
        bare = build_parser().parse_args(["serve", "--log-file"])
        named = build_parser().parse_args(["serve", "--log-file", "server.log"])
        absent = build_parser().parse_args(["serve"])

        # Assert
        assert bare.log_file == "posturesense.log"
        assert named.log_file == "server.log"
        assert absent.log_file is None

    def test_engine_prefers_accelerator(self):
        """Test the built engine puts the accelerator before CPU"""
        # Act
        engine = _build_pose_engine("directml")

        # Assert
        assert engine.inference.config.providers == ("DmlExecutionProvider", "CPUExecutionProvider")
        assert not engine.is_model_loaded()


class TestProbe:
    """Tests for the probe command"""

    def test_probe_json(self, monkeypatch, capsys):
        """Test probe reports frame geometry and format"""
        # Arrange
        monkeypatch.setattr(capture.camera, "OpenCVCamera", lambda config: FakeCamera())

        # Act
        code = main(["--format", "json", "probe"])

        # Assert
        assert code == ExitCode.SUCCESS.value
        result = json.loads(capsys.readouterr().out)
        assert result == {"camera": "fake:0", "width": 64, "height": 48, "bytes": 64 * 48 * 3, "format": "rgb24"}

    def test_probe_device_error(self, monkeypatch, capsys):
        """Test probe failure exit code"""
        # Arrange
        monkeypatch.setattr(capture.camera, "OpenCVCamera", lambda config: FakeCamera(fail_open=True))

        # Act
        code = main(["probe"])

        # Assert
        assert code == ExitCode.ERROR.value
        assert "Failed to open camera" in capsys.readouterr().err


class TestInfer:
    """Tests for the infer command"""

    @pytest.fixture
    def image_file(self, tmp_path: Path) -> Path:
        path = tmp_path / "person.png"
        Image.fromarray(np.zeros((48, 64, 3), dtype=np.uint8)).save(path)
        return path

    def test_infer_json(self, monkeypatch, capsys, image_file: Path, model_file: Path):
        """Test pose and metrics output for an image"""
        # Arrange
        monkeypatch.setattr(pipelines, "PoseEngine", lambda **kwargs: PoseEngine(inference_engine=FakeInferenceEngine()))

        # Act
        code = main(["--format", "json", "infer", str(image_file), "--model", str(model_file)])

        # Assert
        assert code == ExitCode.SUCCESS.value
        output = json.loads(capsys.readouterr().out)
        assert output["width"] == 64
        assert output["height"] == 48
        assert len(output["landmarks"]) == 33
        assert set(output["metrics"]) == {"total", "neck", "shoulders", "spine", "is_good"}

    def test_infer_missing_model(self, capsys, image_file: Path, tmp_path: Path):
        """Test a missing model path fails cleanly"""
        # Act
        code = main(["infer", str(image_file), "--model", str(tmp_path / "missing.onnx")])

        # Assert
        assert code == ExitCode.ERROR.value
        assert "not found" in capsys.readouterr().err

    def test_infer_unreadable_image(self, capsys, tmp_path: Path):
        """Test an unreadable image is an argument error"""
        # Arrange
        bogus = tmp_path / "bogus.png"
        bogus.write_bytes(b"not an image")

        # Act
        code = main(["infer", str(bogus)])

        # Assert
        assert code == ExitCode.INVALID_ARGS.value
        assert "cannot read image" in capsys.readouterr().err
