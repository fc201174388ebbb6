"""
Authentication Test Suite for Tubely

Covers bearer token extraction, access token validation and the
authentication failures surfaced by the upload routes.
"""

from datetime import UTC, datetime, timedelta
from uuid import UUID

import pytest

from fastapi.testclient import TestClient
from jose import jwt

from tests.conftest import OWNER_ID, VIDEO_ID
from tubely.config import Settings
from tubely.core.auth import create_access_token, get_bearer_token, validate_jwt
from tubely.core.errors import UnauthenticatedError


def _encode(settings: Settings, **claims) -> str:
    now = datetime.now(UTC)
    payload = {"iss": settings.jwt_issuer, "iat": now, "exp": now + timedelta(hours=1)}
    payload.update(claims)
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


class TestBearerToken:
    """Tests for Authorization header parsing."""

    def test_extracts_token(self) -> None:
        """The token after 'Bearer ' is returned as-is."""
        assert get_bearer_token({"authorization": "Bearer abc.def.ghi"}) == "abc.def.ghi"

    def test_scheme_is_case_insensitive(self) -> None:
        """'bearer' in lower case is accepted."""
        assert get_bearer_token({"authorization": "bearer abc.def.ghi"}) == "abc.def.ghi"

    def test_missing_header(self) -> None:
        """No Authorization header is unauthenticated."""
        with pytest.raises(UnauthenticatedError) as exc_info:
            get_bearer_token({})
        assert exc_info.value.message == "Couldn't find JWT"

    @pytest.mark.parametrize("value", ["Basic dXNlcjpwYXNz", "Bearer", "Bearer   ", "abc.def.ghi"])
    def test_malformed_header(self, value: str) -> None:
        """Other schemes and empty tokens are rejected."""
        with pytest.raises(UnauthenticatedError):
            get_bearer_token({"authorization": value})


class TestValidateJWT:
    """Tests for access token validation."""

    def test_round_trip(self, test_settings: Settings) -> None:
        """A token issued by the service validates to its subject."""
        token = create_access_token(OWNER_ID, test_settings)
        assert validate_jwt(token, test_settings) == OWNER_ID

    def test_expired_token(self, test_settings: Settings) -> None:
        """An expired token is rejected."""
        token = create_access_token(OWNER_ID, test_settings, expires_in=timedelta(seconds=-30))
        with pytest.raises(UnauthenticatedError):
            validate_jwt(token, test_settings)

    def test_wrong_secret(self, test_settings: Settings) -> None:
        """A token signed with another secret is rejected."""
        other = test_settings.model_copy(update={"jwt_secret": "x" * 40})
        token = create_access_token(OWNER_ID, other)
        with pytest.raises(UnauthenticatedError):
            validate_jwt(token, test_settings)

    def test_wrong_issuer(self, test_settings: Settings) -> None:
        """A token from another issuer is rejected."""
        token = _encode(test_settings, sub=str(OWNER_ID), iss="someone-else")
        with pytest.raises(UnauthenticatedError):
            validate_jwt(token, test_settings)

    def test_missing_expiry(self, test_settings: Settings) -> None:
        """A token without exp is rejected."""
        token = jwt.encode(
            {"iss": test_settings.jwt_issuer, "sub": str(OWNER_ID)},
            test_settings.jwt_secret,
            algorithm=test_settings.jwt_algorithm,
        )
        with pytest.raises(UnauthenticatedError):
            validate_jwt(token, test_settings)

    def test_missing_subject(self, test_settings: Settings) -> None:
        """A token without sub is rejected."""
        with pytest.raises(UnauthenticatedError):
            validate_jwt(_encode(test_settings), test_settings)

    def test_non_uuid_subject(self, test_settings: Settings) -> None:
        """The subject must parse as a UUID."""
        with pytest.raises(UnauthenticatedError):
            validate_jwt(_encode(test_settings, sub="not-a-uuid"), test_settings)

    def test_garbage_token(self, test_settings: Settings) -> None:
        """A string that is not a JWT is rejected."""
        with pytest.raises(UnauthenticatedError):
            validate_jwt("definitely.not.ajwt", test_settings)

    def test_subject_is_uuid_instance(self, test_settings: Settings) -> None:
        """The caller identity comes back as a UUID, not a string."""
        token = create_access_token(OWNER_ID, test_settings)
        assert isinstance(validate_jwt(token, test_settings), UUID)


class TestUploadAuthentication:
    """Authentication failures on the upload routes."""

    @pytest.mark.parametrize("route", ["thumbnail", "video"])
    def test_missing_token_returns_401(
        self,
        test_client: TestClient,
        mock_videos_collection,
        route: str,
    ) -> None:
        """Requests without a bearer token never reach the video record."""
        response = test_client.post(
            f"/videos/{VIDEO_ID}/{route}",
            files={route: ("file.bin", b"data", "image/png")},
        )

        assert response.status_code == 401
        assert response.json() == {"error": "Couldn't find JWT"}
        mock_videos_collection.find_one.assert_not_called()

    def test_expired_token_returns_401(
        self,
        test_client: TestClient,
        test_settings: Settings,
    ) -> None:
        """Expired tokens are rejected with the validation message."""
        token = create_access_token(OWNER_ID, test_settings, expires_in=timedelta(seconds=-30))

        response = test_client.post(
            f"/videos/{VIDEO_ID}/thumbnail",
            headers={"Authorization": f"Bearer {token}"},
            files={"thumbnail": ("thumb.png", b"data", "image/png")},
        )

        assert response.status_code == 401
        assert response.json() == {"error": "Couldn't validate JWT"}
