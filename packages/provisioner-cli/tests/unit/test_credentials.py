import string

from provisioner_cli.credentials import generate_api_key, generate_password

# Test constants
PASSWORD_LENGTH = 32
API_KEY_LENGTH = 64
SAMPLES = 200


class TestGeneratePassword:
    def test_length_and_alphabet(self):
        """Generated passwords are 32 chars without '=', '+' or '/'."""
        for _ in range(SAMPLES):
            password = generate_password()
            assert len(password) == PASSWORD_LENGTH
            assert not set(password) & {"=", "+", "/"}
            assert set(password) <= set(string.ascii_letters + string.digits)

    def test_passwords_differ(self):
        """Two generated passwords are not the same."""
        assert generate_password() != generate_password()

    def test_tops_up_when_filtering_leaves_too_few_chars(self, mocker):
        """A batch that is mostly '/' after encoding triggers another draw."""
        token_bytes = mocker.patch(
            "provisioner_cli.credentials.secrets.token_bytes",
            side_effect=[b"\xff" * 32, b"a" * 32],
        )

        password = generate_password()

        assert token_bytes.call_count == 2  # noqa: PLR2004
        assert len(password) == PASSWORD_LENGTH
        # b"\xff\xff" encodes to "//8=", the only survivor of the first batch
        assert password.startswith("8YWFh")


class TestGenerateApiKey:
    def test_hex_64_chars(self):
        """API keys are 64 lowercase hex characters."""
        key = generate_api_key()
        assert len(key) == API_KEY_LENGTH
        assert set(key) <= set("0123456789abcdef")
