"""Tests for the installation settings record."""

from bitrix24_placement_server.schemas.settings import InstallationSettings


class TestFlags:
    def test_bitrix_y_n_flags(self):
        record = InstallationSettings(is_web_hook="Y", is_local_app="N")

        assert record.is_web_hook is True
        assert record.is_local_app is False

    def test_missing_flags_default_false(self):
        record = InstallationSettings.model_validate({"domain": "foo.example", "is_web_hook": None})

        assert record.is_web_hook is False
        assert record.is_local_app is False


class TestRestEndpoint:
    def test_derived_from_domain(self):
        assert InstallationSettings(domain="foo.example").rest_endpoint() == "https://foo.example/rest/"

    def test_stored_endpoint_preferred_over_domain(self):
        record = InstallationSettings(domain="foo.example", client_endpoint="https://crm.foo.example/rest/")

        assert record.rest_endpoint() == "https://crm.foo.example/rest/"

    def test_stored_endpoint_wins_over_override_domain(self):
        record = InstallationSettings(domain="foo.example", client_endpoint="https://api.foo.example/rest/")

        assert record.rest_endpoint("evil.example") == "https://api.foo.example/rest/"

    def test_override_domain_wins_over_stored_domain(self):
        record = InstallationSettings(domain="foo.example")

        assert record.rest_endpoint("bar.example") == "https://bar.example/rest/"

    def test_webhook_endpoint_ignores_override(self):
        record = InstallationSettings(
            client_endpoint="https://foo.example/rest/1/key/", is_web_hook=True
        )

        assert record.rest_endpoint("bar.example") == "https://foo.example/rest/1/key/"

    def test_no_endpoint(self):
        assert InstallationSettings().rest_endpoint() is None


class TestIsInstalled:
    def test_oauth_install(self, installed_settings):
        assert installed_settings.is_installed()

    def test_local_app_without_token(self):
        assert InstallationSettings(domain="foo.example", is_local_app=True).is_installed()

    def test_webhook_without_token(self):
        record = InstallationSettings(client_endpoint="https://foo.example/rest/1/key/", is_web_hook=True)

        assert record.is_installed()

    def test_domain_without_credential(self):
        assert not InstallationSettings(domain="foo.example").is_installed()

    def test_token_without_endpoint(self):
        assert not InstallationSettings(access_token="T1").is_installed()


def test_with_tokens_keeps_other_fields(installed_settings):
    refreshed = installed_settings.with_tokens("T2", 1800, None)

    assert refreshed.access_token == "T2"
    assert refreshed.expires_in == 1800
    assert refreshed.refresh_token == "R1"
    assert refreshed.model_dump(exclude={"access_token", "expires_in"}) == installed_settings.model_dump(
        exclude={"access_token", "expires_in"}
    )
    assert installed_settings.access_token == "T1"
