"""Shared fixtures: every test runs in its own working directory and XDG config home."""

import pytest


@pytest.fixture(autouse=True)
def isolated_workdir(tmp_path, monkeypatch):
    """Keep project/user config files from the developer machine out of tests."""
    monkeypatch.setenv('XDG_CONFIG_HOME', str(tmp_path / 'xdg'))
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def bootstrap_script(tmp_path):
    """The default bootstrap script path, relative to the working directory."""
    script = tmp_path / 'assets' / 'configure_amz_linux_sample_app.sh'
    script.parent.mkdir(parents=True, exist_ok=True)
    script.write_text('#!/bin/bash\necho hello-from-bootstrap\n')
    return script


@pytest.fixture
def project_config(tmp_path):
    """Write an ec2_pipeline.yaml into the working directory."""
    def _write(content: str):
        path = tmp_path / 'ec2_pipeline.yaml'
        path.write_text(content)
        return path
    return _write
