"""Tests for the application image publisher."""

import json
import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from deployment.core.exceptions import ImageBuildError
from deployment.scripts.image_builder import ECR_OUTPUT_KEY, ImagePublisher

ECR_URL = "123456789012.dkr.ecr.us-east-1.amazonaws.com/pipeshub-dev-app"


def _completed(stdout: str = "") -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(args=[], returncode=0, stdout=stdout, stderr="")


@pytest.fixture
def mock_run():
    with patch("deployment.scripts.image_builder.subprocess.run") as run:
        run.return_value = _completed()
        yield run


class TestImagePublisherSetup:
    """Tests for publisher initialisation."""

    def test_tag_taken_from_source_image(self) -> None:
        publisher = ImagePublisher("dev", source_image="pipeshubai/pipeshub-ai:v0.4.1")

        assert publisher.image_tag == "v0.4.1"
        assert publisher.image_local == "pipeshub-ai:v0.4.1"

    def test_registry_port_is_not_a_tag(self) -> None:
        publisher = ImagePublisher("dev", source_image="registry.local:5000/pipeshub-ai")

        assert publisher.image_tag == "latest"

    def test_missing_dockerfile(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            ImagePublisher("dev", build_context=tmp_path)


class TestImagePublisherCommands:
    """Tests for the docker, aws and pulumi invocations."""

    def test_pull_when_no_context(self, mock_run: MagicMock) -> None:
        ImagePublisher("dev", source_image="pipeshubai/pipeshub-ai:latest").build_image()

        commands = [call.args[0] for call in mock_run.call_args_list]
        assert commands == [
            ["docker", "pull", "--platform=linux/amd64", "pipeshubai/pipeshub-ai:latest"],
            ["docker", "tag", "pipeshubai/pipeshub-ai:latest", "pipeshub-ai:latest"],
        ]

    def test_build_from_context(self, mock_run: MagicMock, tmp_path: Path) -> None:
        (tmp_path / "Dockerfile").write_text("FROM scratch\n")

        ImagePublisher("dev", build_context=tmp_path).build_image()

        command = mock_run.call_args.args[0]
        assert command[:2] == ["docker", "build"]
        assert command[-1] == str(tmp_path)

    def test_repository_url_from_stack_outputs(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = _completed(json.dumps({ECR_OUTPUT_KEY: ECR_URL}))

        url = ImagePublisher("staging", iac_dir=tmp_path).get_ecr_repository_url()

        assert url == ECR_URL
        assert mock_run.call_args.args[0] == ["pulumi", "stack", "output", "-s", "staging", "--json"]
        assert mock_run.call_args.kwargs["cwd"] == str(tmp_path)

    def test_registry_image_uri_matches_pushed_tag(self, mock_run: MagicMock) -> None:
        """The image the host runs is the one push_image produces."""
        mock_run.return_value = _completed(json.dumps({ECR_OUTPUT_KEY: ECR_URL}))
        publisher = ImagePublisher("dev", source_image="pipeshubai/pipeshub-ai:1.4.0")

        assert publisher.registry_image_uri() == f"{ECR_URL}:1.4.0"
        mock_run.return_value = _completed()
        assert publisher.push_image(ECR_URL) == f"{ECR_URL}:1.4.0"

    def test_missing_repository_output(self, mock_run: MagicMock) -> None:
        mock_run.return_value = _completed(json.dumps({"vpc_id": "vpc-1"}))

        with pytest.raises(ImageBuildError) as exc_info:
            ImagePublisher("dev").get_ecr_repository_url()

        assert exc_info.value.details["stage"] == "lookup"

    def test_failed_command_raises_with_stage(self, mock_run: MagicMock) -> None:
        mock_run.side_effect = subprocess.CalledProcessError(1, ["docker"], stderr="denied\n")

        with pytest.raises(ImageBuildError) as exc_info:
            ImagePublisher("dev").push_image(ECR_URL)

        assert "denied" in exc_info.value.message
        assert exc_info.value.details["stage"] == "push"

    def test_missing_binary(self, mock_run: MagicMock) -> None:
        mock_run.side_effect = FileNotFoundError("docker")

        with pytest.raises(ImageBuildError, match="docker not found"):
            ImagePublisher("dev").build_image()

    def test_authenticate_pipes_password(self, mock_run: MagicMock) -> None:
        mock_run.side_effect = [_completed("token\n"), _completed()]

        ImagePublisher("dev").authenticate_with_ecr(ECR_URL)

        first, second = mock_run.call_args_list
        assert first.args[0] == ["aws", "ecr", "get-login-password", "--region", "us-east-1"]
        assert second.kwargs["input"] == "token"
        assert second.args[0][-1] == "123456789012.dkr.ecr.us-east-1.amazonaws.com"

    def test_invalid_ecr_url(self) -> None:
        with pytest.raises(ImageBuildError):
            ImagePublisher.parse_registry("docker.io/pipeshubai/pipeshub-ai")

    def test_build_and_push(self, mock_run: MagicMock) -> None:
        outputs = _completed(json.dumps({ECR_OUTPUT_KEY: ECR_URL}))
        mock_run.side_effect = [_completed(), _completed(), outputs, _completed("token"), _completed(),
                                _completed(), _completed()]

        uri = ImagePublisher("dev", source_image="pipeshubai/pipeshub-ai:v1").build_and_push()

        assert uri == f"{ECR_URL}:v1"
        assert mock_run.call_args.args[0] == ["docker", "push", f"{ECR_URL}:v1"]
