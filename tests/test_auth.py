"""Tests for credential resolution"""
from unittest.mock import MagicMock

import pytest
from requests.auth import HTTPBasicAuth

from ghrelease.auth import (
    CredentialResolver,
    Decrypter,
    EnvironmentDecrypter,
    PasswordCredential,
    PlainTextDecrypter,
    Server,
    TokenAuth,
    TokenCredential,
)
from ghrelease.errors import ConfigurationError


def _settings(*servers):
    settings = MagicMock()
    settings.get_server.side_effect = lambda server_id: next((s for s in servers if s.id == server_id), None)
    return settings


class TestServer:
    """Test Server settings entries"""

    def test_from_dict(self):
        server = Server.from_dict({"id": "github", "username": "u", "password": "p"})

        assert server == Server(id="github", username="u", password="p")

    def test_from_dict_accepts_token_alias(self):
        server = Server.from_dict({"id": "github", "token": "abc"})

        assert server.private_key == "abc"

    def test_from_dict_requires_id(self):
        with pytest.raises(ConfigurationError):
            Server.from_dict({"username": "u"})

    def test_to_dict_omits_empty_fields(self):
        assert Server(id="github", private_key="abc").to_dict() == {"id": "github", "private_key": "abc"}


class TestDecrypters:
    """Test Decrypter implementations"""

    def test_decrypter_is_abstract(self):
        """Test that Decrypter cannot be instantiated directly"""
        with pytest.raises(TypeError):
            Decrypter()

    def test_plain_text_returns_entry_unchanged(self):
        server = Server(id="github", password="${SECRET}")

        assert PlainTextDecrypter().decrypt(server) is server

    def test_environment_expands_references(self):
        decrypter = EnvironmentDecrypter({"GITHUB_TOKEN": "tok", "USER_NAME": "octo"})
        server = Server(id="github", username="$USER_NAME", private_key="${GITHUB_TOKEN}")

        decrypted = decrypter.decrypt(server)

        assert decrypted.username == "octo"
        assert decrypted.private_key == "tok"

    def test_environment_leaves_unknown_references(self):
        decrypter = EnvironmentDecrypter({})

        assert decrypter.decrypt(Server(id="x", password="${MISSING}")).password == "${MISSING}"


class TestCredentialResolver:
    """Test CredentialResolver priority order"""

    def test_environment_credentials_bypass_settings(self):
        """Test username/password from the environment never consult settings"""
        settings = MagicMock()
        resolver = CredentialResolver(
            settings,
            environ={"GHRELEASE_USERNAME": "env-user", "GHRELEASE_PASSWORD": "env-pass"},
        )

        credential = resolver.resolve("github")

        assert credential == PasswordCredential("env-user", "env-pass")
        settings.get_server.assert_not_called()

    def test_only_username_in_environment_falls_back_to_settings(self):
        settings = _settings(Server(id="github", private_key="tok"))
        resolver = CredentialResolver(settings, environ={"GHRELEASE_USERNAME": "env-user"})

        assert resolver.resolve("github") == TokenCredential("tok")

    def test_missing_server_raises(self):
        resolver = CredentialResolver(_settings(), environ={})

        with pytest.raises(ConfigurationError, match="Server 'github' not found"):
            resolver.resolve("github")

    def test_no_settings_raises(self):
        resolver = CredentialResolver(None, environ={})

        with pytest.raises(ConfigurationError):
            resolver.resolve("github")

    def test_server_password_credentials(self):
        settings = _settings(Server(id="github", username="u", password="p", private_key="tok"))
        resolver = CredentialResolver(settings, environ={})

        assert resolver.resolve("github") == PasswordCredential("u", "p")

    def test_server_token_credentials(self):
        """Test a server with only a token selects token authentication"""
        settings = _settings(Server(id="github", private_key="tok"))
        resolver = CredentialResolver(settings, environ={})

        assert resolver.resolve("github") == TokenCredential("tok")

    def test_username_without_password_uses_token(self):
        settings = _settings(Server(id="github", username="u", private_key="tok"))
        resolver = CredentialResolver(settings, environ={})

        assert resolver.resolve("github") == TokenCredential("tok")

    def test_server_without_credentials_raises(self):
        settings = _settings(Server(id="github", username="u"))
        resolver = CredentialResolver(settings, environ={})

        with pytest.raises(ConfigurationError, match="no login credentials"):
            resolver.resolve("github")

    def test_decrypter_is_applied(self):
        """Test the injected decrypter sees the stored entry"""
        stored = Server(id="github", private_key="encrypted")
        decrypter = MagicMock(spec=Decrypter)
        decrypter.decrypt.return_value = Server(id="github", private_key="plain")
        resolver = CredentialResolver(_settings(stored), decrypter=decrypter, environ={})

        assert resolver.resolve("github") == TokenCredential("plain")
        decrypter.decrypt.assert_called_once_with(stored)


class TestCredentials:
    """Test credential -> requests auth mapping"""

    def test_password_credential_uses_basic_auth(self):
        auth = PasswordCredential("u", "p").requests_auth()

        assert isinstance(auth, HTTPBasicAuth)
        assert auth.username == "u"

    def test_token_credential_sets_authorization_header(self):
        auth = TokenCredential("tok").requests_auth()
        request = MagicMock()
        request.headers = {}

        assert isinstance(auth, TokenAuth)
        auth(request)
        assert request.headers["Authorization"] == "token tok"

    def test_repr_hides_secrets(self):
        assert "p4ss" not in repr(PasswordCredential("u", "p4ss"))
        assert "s3cr3t" not in repr(TokenCredential("s3cr3t"))


class TestDefaultDecryption:
    """Test the resolver's default decrypter"""

    def test_default_leaves_dollar_signs_in_secrets(self):
        """Test stored secrets are used verbatim unless expansion is requested"""
        settings = _settings(Server(id="github", username="octo", password="s3cr$HOME"))
        resolver = CredentialResolver(settings, environ={})

        assert isinstance(resolver.decrypter, PlainTextDecrypter)
        assert resolver.resolve("github") == PasswordCredential("octo", "s3cr$HOME")

    def test_environment_expansion_is_opt_in(self):
        settings = _settings(Server(id="github", private_key="${GITHUB_TOKEN}"))
        resolver = CredentialResolver(
            settings,
            decrypter=EnvironmentDecrypter({"GITHUB_TOKEN": "tok"}),
            environ={},
        )

        assert resolver.resolve("github") == TokenCredential("tok")
