"""
core/i18n.py -- Localized user-facing messages.

Every message returned to a client is looked up by key. The language is
negotiated per request from the Accept-Language header and passed in
explicitly; nothing here reads request state or process-wide settings.

Usage:
    lang = negotiate_language(request.headers.get("accept-language"))
    translate("auth.invalidOTP", lang)   # "Invalid or expired OTP"

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

DEFAULT_LANGUAGE = "en"
SUPPORTED_LANGUAGES: tuple[str, ...] = ("en", "ar")

TRANSLATIONS: dict[str, dict[str, str]] = {
    "en": {
        # Authentication errors
        "auth.emailRequired": "Email and password are required",
        "auth.profileFieldsRequired": "Name and date of birth are required",
        "auth.passwordMinLength": "Password must be at least 8 characters",
        "auth.passwordMaxLength": "Password must be at most 72 bytes long",
        "auth.userExists": "User already exists",
        "auth.userNotFound": "User not found",
        "auth.invalidCredentials": "Invalid email or password",
        "auth.invalidOTP": "Invalid or expired OTP",
        "auth.tokenRequired": "Authentication required. Please login.",
        "auth.tokenInvalid": "Invalid token",
        "auth.tokenExpired": "Token expired",
        "auth.unauthorized": "You are not authorized to access this resource",
        "auth.cannotDeleteSelf": "You cannot delete your own account",
        # Success messages
        "auth.registerSuccess": "User registered successfully. OTP sent to email.",
        "auth.otpResent": "OTP resent successfully",
        "auth.emailConfirmed": "Email confirmed successfully",
        "auth.loginSuccess": "Login successful",
        "auth.logoutSuccess": "Logout successful",
        "auth.profileUpdated": "Profile updated successfully",
        "auth.accountDeleted": "Account deleted successfully",
        "auth.userUpdated": "User updated successfully",
        "auth.userDeleted": "User deleted successfully",
        # General errors
        "error.internalServer": "Internal Server Error",
        "error.routeNotFound": "Route not found",
        "error.validationFailed": "Validation error",
        "error.mailDelivery": "Failed to send OTP email",
    },
    "ar": {
        # Authentication errors
        "auth.emailRequired": "البريد الإلكتروني وكلمة المرور مطلوبان",
        "auth.profileFieldsRequired": "الاسم وتاريخ الميلاد مطلوبان",
        "auth.passwordMinLength": "يجب أن تكون كلمة المرور 8 أحرف على الأقل",
        "auth.passwordMaxLength": "يجب ألا تزيد كلمة المرور عن 72 بايت",
        "auth.userExists": "المستخدم موجود بالفعل",
        "auth.userNotFound": "المستخدم غير موجود",
        "auth.invalidCredentials": "البريد الإلكتروني أو كلمة المرور غير صحيحة",
        "auth.invalidOTP": "رمز التحقق غير صحيح أو منتهي الصلاحية",
        "auth.tokenRequired": "المصادقة مطلوبة. يرجى تسجيل الدخول.",
        "auth.tokenInvalid": "رمز غير صحيح",
        "auth.tokenExpired": "انتهت صلاحية الرمز",
        "auth.unauthorized": "غير مصرح لك بالوصول إلى هذا المورد",
        "auth.cannotDeleteSelf": "لا يمكنك حذف حسابك الخاص",
        # Success messages
        "auth.registerSuccess": "تم تسجيل المستخدم بنجاح. تم إرسال رمز التحقق إلى البريد الإلكتروني.",
        "auth.otpResent": "تم إعادة إرسال رمز التحقق بنجاح",
        "auth.emailConfirmed": "تم تأكيد البريد الإلكتروني بنجاح",
        "auth.loginSuccess": "تم تسجيل الدخول بنجاح",
        "auth.logoutSuccess": "تم تسجيل الخروج بنجاح",
        "auth.profileUpdated": "تم تحديث الملف الشخصي بنجاح",
        "auth.accountDeleted": "تم حذف الحساب بنجاح",
        "auth.userUpdated": "تم تحديث المستخدم بنجاح",
        "auth.userDeleted": "تم حذف المستخدم بنجاح",
        # General errors
        "error.internalServer": "خطأ في الخادم الداخلي",
        "error.routeNotFound": "الطريق غير موجود",
        "error.validationFailed": "خطأ في التحقق",
        "error.mailDelivery": "فشل إرسال البريد الإلكتروني لرمز التحقق",
    },
}


def negotiate_language(
    accept_language: str | None,
    supported: Iterable[str] = SUPPORTED_LANGUAGES,
    default: str = DEFAULT_LANGUAGE,
) -> str:
    """Pick a supported language from an Accept-Language header value.

    Only the first listed tag counts ("ar,en;q=0.9" -> "ar"). Quality values
    and region subtags are ignored ("ar-EG" -> "ar"). Anything unrecognized,
    or a missing header, yields the default.
    """
    if not accept_language:
        return default
    first = accept_language.lower().split(",")[0].split(";")[0].strip()
    primary = first.split("-")[0]
    return primary if primary in tuple(supported) else default


def translate(
    key: str,
    lang: str = DEFAULT_LANGUAGE,
    table: Mapping[str, Mapping[str, str]] = TRANSLATIONS,
) -> str:
    """Return the message for key in lang.

    Falls back to the default-language entry, then to the key itself, so a
    missing translation never turns into an error response of its own.
    """
    base = table.get(DEFAULT_LANGUAGE, {})
    messages = table.get(lang, base)
    return messages.get(key) or base.get(key) or key
