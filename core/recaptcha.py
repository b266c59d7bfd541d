# core/recaptcha.py

from typing import List, Optional

import requests
from pydantic import BaseModel

from core.config import Settings
from core.logging_config import logger


class RecaptchaResult(BaseModel):
    valid: bool
    score: Optional[float] = None
    message: str
    errors: List[str] = []


class RecaptchaNotConfigured(RuntimeError):
    pass


class RecaptchaVerifier:
    """
    Server-side check of Google reCAPTCHA v3 tokens.
    Score ranges from 0.0 (very likely a bot) to 1.0 (very likely a human).
    """

    def __init__(
        self,
        secret_key: Optional[str],
        verify_url: str,
        min_score: float = 0.5,
        expected_action: str = "inquiry_submit",
        timeout: int = 10,
    ):
        self.secret_key = secret_key
        self.verify_url = verify_url
        self.min_score = min_score
        self.expected_action = expected_action
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "RecaptchaVerifier":
        return cls(
            secret_key=settings.RECAPTCHA_SECRET_KEY,
            verify_url=settings.RECAPTCHA_VERIFY_URL,
            min_score=settings.RECAPTCHA_MIN_SCORE,
            expected_action=settings.RECAPTCHA_EXPECTED_ACTION,
        )

    def siteverify(self, token: str, remote_ip: Optional[str] = None) -> dict:
        if not self.secret_key:
            logger.error("RECAPTCHA_SECRET_KEY is not configured")
            raise RecaptchaNotConfigured("reCAPTCHA is not configured on the server")

        payload = {"secret": self.secret_key, "response": token}
        if remote_ip:
            payload["remoteip"] = remote_ip

        try:
            resp = requests.post(self.verify_url, data=payload, timeout=self.timeout)
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Error verifying reCAPTCHA: {e}")
            return {"success": False, "error-codes": ["Failed to verify reCAPTCHA token"]}

        logger.info(
            f"reCAPTCHA result: success={data.get('success')} score={data.get('score')} "
            f"action={data.get('action')} hostname={data.get('hostname')}"
        )
        return data

    def validate(self, token: str, remote_ip: Optional[str] = None) -> RecaptchaResult:
        if not token:
            return RecaptchaResult(valid=False, message="No reCAPTCHA token provided")

        result = self.siteverify(token, remote_ip)

        if not result.get("success"):
            return RecaptchaResult(
                valid=False,
                message="reCAPTCHA verification failed. Please try again.",
                errors=result.get("error-codes") or [],
            )

        score = result.get("score")

        if result.get("action") != self.expected_action:
            return RecaptchaResult(
                valid=False,
                score=score,
                message="Invalid reCAPTCHA action. Security check failed.",
            )

        if score is None or score < self.min_score:
            return RecaptchaResult(
                valid=False,
                score=score,
                message=(
                    "Security check failed. Your submission appears to be automated. "
                    "If you are human, please try again or contact support."
                ),
            )

        return RecaptchaResult(valid=True, score=score, message="reCAPTCHA verification successful")
