from src.captcha.recaptcha import RecaptchaVerification, RecaptchaVerifier

__all__ = ["RecaptchaVerification", "RecaptchaVerifier"]
