"""Tests unitarios para la política de reintentos."""

from app.utils.error_handler import SquareAPIException, ValidationException
from app.utils.retry_handler import RetryPolicy, create_square_retry_handler


class TestRetryPolicy:
    """Tests para la decisión de reintento y el cálculo de espera."""

    def test_app_exceptions_follow_is_retryable(self):
        """Debe reintentar solo excepciones marcadas como reintentables."""
        policy = RetryPolicy(max_attempts=3)

        assert policy.should_retry(SquareAPIException("timeout", is_transport_error=True), attempt=1) is True
        assert policy.should_retry(SquareAPIException("rate", api_response_code=429), attempt=1) is True
        assert policy.should_retry(SquareAPIException("declined", api_response_code=402), attempt=1) is False
        assert policy.should_retry(ValidationException("bad", field="email"), attempt=1) is False

    def test_other_exceptions_need_retry_on(self):
        """Debe reintentar excepciones externas solo si están en retry_on."""
        policy = RetryPolicy(max_attempts=3, retry_on=[ConnectionError])

        assert policy.should_retry(ConnectionResetError("reset"), attempt=1) is True
        assert policy.should_retry(KeyError("missing"), attempt=1) is False

    def test_last_attempt_is_never_retried(self):
        policy = RetryPolicy(max_attempts=2)

        assert policy.should_retry(SquareAPIException("timeout", is_transport_error=True), attempt=2) is False

    def test_delay_backoff_and_retry_after(self):
        """Debe usar backoff exponencial y respetar Retry-After acotado a max_delay."""
        policy = RetryPolicy(base_delay=0.5, max_delay=8.0, jitter=False)

        assert policy.calculate_delay(1) == 0.5
        assert policy.calculate_delay(3) == 2.0
        assert policy.calculate_delay(10) == 8.0
        assert policy.calculate_delay(1, SquareAPIException("rate", api_response_code=429, retry_after=3)) == 3
        assert policy.calculate_delay(1, SquareAPIException("rate", api_response_code=429, retry_after=120)) == 8.0

    def test_square_handler_settings(self):
        handler = create_square_retry_handler(max_attempts=4, timeout=5)

        assert handler.retry_policy.max_attempts == 4
        assert handler.timeout == 5
        assert handler.on_timeout("slow").is_transport_error is True
