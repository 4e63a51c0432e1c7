import json

import pytest

from spotify_stats.auth.models.errors import SecretReadError
from spotify_stats.secrets.config import load_secrets_config


class TestLoadSecretsConfig:
    def test_loads_bootstrap_file(self, tmp_path):
        # Arrange
        path = tmp_path / "bitwarden_config.json"
        path.write_text(
            json.dumps(
                {"access_token": "0.machine.token", "org_id": "org", "project_id": "p"}
            )
        )

        # Act
        config = load_secrets_config(path)

        # Assert
        assert config.access_token == "0.machine.token"
        assert config.org_id == "org"
        assert config.project_id == "p"
        assert config.api_url == "https://api.bitwarden.com"
        assert "0.machine.token" not in repr(config)

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(SecretReadError):
            load_secrets_config(tmp_path / "absent.json")

    @pytest.mark.parametrize(
        "content",
        [
            "{not json",
            json.dumps({"access_token": "t", "org_id": "org"}),
            json.dumps({"access_token": "", "org_id": "org", "project_id": "p"}),
        ],
    )
    def test_invalid_file_raises(self, tmp_path, content):
        path = tmp_path / "bitwarden_config.json"
        path.write_text(content)

        with pytest.raises(SecretReadError):
            load_secrets_config(path)
