"""Property-based tests for configuration management."""

from hypothesis import given
from hypothesis import strategies as st

from newsbreeze.config import Config

tokens = st.text(
    alphabet=st.characters(whitelist_categories=("Lu", "Ll", "Nd")),
    min_size=1,
    max_size=40,
)


class TestConfigProperties:
    """Property-based tests for Config class."""

    @given(tokens)
    def test_configured_token_is_passed_through(self, token):
        """
        Feature: newsbreeze, Property 1: Credentials Reach Their Handler

        For any non-blank token, the summarization configuration carries it verbatim.
        """
        config = Config({"HUGGINGFACE_API_TOKEN": token})

        assert config.get_summarization_config().api_token == token

    @given(st.text(alphabet=" \t\n", max_size=10))
    def test_blank_token_is_unset(self, blank):
        """
        Feature: newsbreeze, Property 2: Blank Credentials Are Missing

        For any whitespace-only value, the credential is reported as not configured.
        """
        config = Config({"HUGGINGFACE_API_TOKEN": blank, "TTS_API_TOKEN": blank})

        assert config.get_summarization_config().api_token is None
        assert config.get_speech_config().api_token is None

    @given(st.integers(min_value=1, max_value=65535))
    def test_port_round_trips(self, port):
        """
        Feature: newsbreeze, Property 3: Listening Port

        For any valid port number, the server configuration listens on it.
        """
        assert Config({"PORT": str(port)}).get_server_config().port == port
