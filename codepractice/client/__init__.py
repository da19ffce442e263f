from .base import BaseApiClient
from .practice_api import PracticeAPI


def create_practice_api(config) -> PracticeAPI:
    """Build a backend client from a Flask config mapping."""
    return PracticeAPI(
        base_url=config.get('PRACTICE_API_URL', 'http://localhost:8080/api'),
        timeout=config.get('PRACTICE_API_TIMEOUT', 30.0),
        max_retries=config.get('PRACTICE_API_MAX_RETRIES', 3),
    )


__all__ = ['BaseApiClient', 'PracticeAPI', 'create_practice_api']
