"""
Error taxonomy

Services raise these; the app factory turns them into the
{"success": false, "message": ...} envelope with the matching status code.
"""


class GatewayError(Exception):
    status_code = 500
    message = "Request failed"

    def __init__(self, message=None):
        super().__init__(message or self.message)
        self.message = message or self.message

    def to_dict(self):
        return {"success": False, "message": self.message}


class ValidationError(GatewayError):
    status_code = 400
    message = "Missing required field"


class EmptyContent(ValidationError):
    message = "Content is required"


class MissingInsight(ValidationError):
    message = "Insight is required"


class NoFileUploaded(ValidationError):
    message = "No file uploaded."


class AuthError(GatewayError):
    status_code = 401
    message = "Unauthorized"


class MissingToken(AuthError):
    message = "No token provided"


class InvalidToken(AuthError):
    message = "Invalid token"


class IncorrectPassword(AuthError):
    message = "Incorrect password"


class UserNotFound(AuthError):
    status_code = 404
    message = "User not found"


class DuplicateUser(GatewayError):
    status_code = 409
    message = "Name already taken"


class InvalidOtp(AuthError):
    status_code = 400
    message = "Invalid OTP"


class OtpExpired(AuthError):
    status_code = 400
    message = "OTP expired"


class ExtractionFailed(GatewayError):
    status_code = 422
    message = "Could not extract text from file"


class GenerationFailed(GatewayError):
    status_code = 502
    message = "Failed to analyze"


class StorageError(GatewayError):
    status_code = 503
    message = "Storage unavailable"
