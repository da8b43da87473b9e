from diary_client.http.api_client import ApiClient
from diary_client.http.interceptor import AuthInterceptor
from diary_client.http.reissue import TokenReissuer
from diary_client.http.requests import FormPart, PendingRequest

__all__ = [
    "ApiClient",
    "AuthInterceptor",
    "FormPart",
    "PendingRequest",
    "TokenReissuer",
]
