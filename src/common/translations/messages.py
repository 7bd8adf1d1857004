#  common/translations/messages.py
from typing import Dict, Optional, Literal

Language = Literal["en", "fa"]

MESSAGES = {
    "auth.unauthenticated": {
        "fa": "برای این کار باید وارد شوید.",
        "en": "You must be signed in to do this."
    },
    "auth.forbidden": {
        "fa": "دسترسی غیرمجاز.",
        "en": "Access denied."
    },
    "follow.followed": {
        "fa": "شما این کاربر را دنبال کردید.",
        "en": "You have successfully followed this user."
    },
    "follow.unfollowed": {
        "fa": "شما دنبال کردن این کاربر را لغو کردید.",
        "en": "You have successfully unfollowed this user."
    },
    "follow.self": {
        "fa": "نمی‌توانید خودتان را دنبال کنید.",
        "en": "You cannot follow yourself."
    },
    "follow.status": {
        "fa": "وضعیت دنبال کردن دریافت شد.",
        "en": "Follow status retrieved."
    },
    "follow.followers_listed": {
        "fa": "فهرست دنبال‌کنندگان دریافت شد.",
        "en": "Followers retrieved."
    },
    "follow.following_listed": {
        "fa": "فهرست دنبال‌شوندگان دریافت شد.",
        "en": "Following retrieved."
    },
    "follow.conflict": {
        "fa": "درخواست با تغییر دیگری تداخل داشت. لطفاً دوباره تلاش کنید.",
        "en": "Could not complete the follow action. Please try again."
    },
    "user.not_found": {
        "fa": "کاربر یافت نشد.",
        "en": "User not found."
    },
    "user.profile": {
        "fa": "پروفایل کاربر دریافت شد.",
        "en": "User profile retrieved."
    },
    "user.profile_created": {
        "fa": "پروفایل شما ساخته شد.",
        "en": "Your profile has been created."
    },
    "user.username_set": {
        "fa": "نام کاربری با موفقیت ثبت شد.",
        "en": "Username has been set successfully."
    },
    "username.invalid": {
        "fa": "قالب نام کاربری نامعتبر است.",
        "en": "Invalid username format."
    },
    "username.reserved": {
        "fa": "این نام کاربری رزرو شده است و قابل استفاده نیست.",
        "en": "This username is reserved and cannot be used."
    },
    "username.taken": {
        "fa": "این نام کاربری قبلاً گرفته شده است.",
        "en": "Username already taken."
    },
    "user.profile_updated": {
        "fa": "پروفایل شما به‌روزرسانی شد.",
        "en": "Your profile has been updated."
    },
    "user.no_changes": {
        "fa": "هیچ تغییری برای ذخیره ارسال نشده است.",
        "en": "No profile changes were provided."
    },
    "admin.counters_reconciled": {
        "fa": "شمارنده‌های کاربر بازبینی شد.",
        "en": "User counters reconciled."
    },
    "server.unavailable": {
        "fa": "سرویس موقتاً در دسترس نیست.",
        "en": "Service temporarily unavailable. Please try again later."
    },
    "server.error": {
        "fa": "خطای سرور رخ داد.",
        "en": "Server error occurred."
    },
}

def get_message(key: str, lang: Language = "en", variables: Optional[Dict[str, int | str]] = None) -> str:
    """
    Retrieve a localized message based on key and language, with optional variable substitution.

    Args:
        key (str): Message key (e.g., 'follow.self')
        lang (Literal["en", "fa"]): Language code ('en' or 'fa')
        variables (Optional[Dict[str, int | str]]): Variables to substitute in the message

    Returns:
        str: Localized message or key as fallback
    """
    message = MESSAGES.get(key, {}).get(lang) or MESSAGES.get(key, {}).get("en") or key
    if variables:
        try:
            return message.format(**variables)
        except (KeyError, ValueError):
            return message
    return message
