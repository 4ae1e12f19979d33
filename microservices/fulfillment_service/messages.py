"""
User-facing messages (Arabic) returned to the admin dashboard.
"""

from typing import Optional

from .models import FulfillmentErrorCode

ERROR_MESSAGES = {
    FulfillmentErrorCode.ORDER_NOT_FOUND: "الطلب غير موجود",
    FulfillmentErrorCode.NO_CARRIER_CONFIGURED: "لا توجد شركة شحن نشطة. يرجى التحقق من إعدادات شركات الشحن.",
    FulfillmentErrorCode.MISSING_VILLAGE_ASSIGNMENT: "الطلب لا يحتوي على معلومات الشحن الكافية. يرجى تحديد شركة الشحن والقرية أولاً.",
    FulfillmentErrorCode.INVALID_OR_STALE_VILLAGE: "القرية المحددة غير موجودة أو غير نشطة. يرجى إعادة تحديد القرية.",
    FulfillmentErrorCode.PACKAGE_ALREADY_EXISTS: "الطرد موجود مسبقاً لهذا الطلب",
    FulfillmentErrorCode.CARRIER_TRANSPORT_FAILURE: "تعذر الاتصال بخادم شركة الشحن",
    FulfillmentErrorCode.CARRIER_BUSINESS_FAILURE: "رفضت شركة الشحن الطرد",
    FulfillmentErrorCode.PACKAGE_NOT_FOUND: "لا يوجد طرد لهذا الطلب. يرجى إنشاء طرد أولاً.",
    FulfillmentErrorCode.ORDER_ALREADY_PACKAGED: "تم إنشاء طرد لهذا الطلب، لا يمكن تعديل معلومات الشحن",
    FulfillmentErrorCode.VALIDATION_ERROR: "البيانات المدخلة غير صالحة",
}

PACKAGE_CREATED_AND_SENT = "تم إنشاء الطرد بنجاح وإرساله إلى شركة الشحن"
PACKAGE_CREATED_NOT_SENT = "تم إنشاء الطرد لكن فشل إرساله إلى شركة الشحن"
PACKAGE_CREATED_NO_ENDPOINT = "تم إنشاء الطرد. شركة الشحن لا تملك واجهة برمجية، يجب إرساله يدوياً"
PACKAGE_RESENT = "تم إعادة إرسال الطرد بنجاح"
PACKAGE_RESEND_FAILED = "فشل إعادة الإرسال: {reason}"
ORDER_CREATED = "تم إنشاء الطلب بنجاح"
SHIPPING_ASSIGNED = "تم تحديث معلومات الشحن بنجاح"

CARRIER_UNAVAILABLE = "خادم شركة الشحن غير متاح مؤقتاً. يرجى المحاولة مرة أخرى بعد قليل."
CARRIER_GATEWAY_ERROR = "خطأ في خادم شركة الشحن. يرجى المحاولة مرة أخرى لاحقاً."
CARRIER_TIMEOUT = "انتهت مهلة الاتصال بشركة الشحن. يرجى المحاولة مرة أخرى."
UNKNOWN_ERROR = "خطأ غير معروف"

FULFILLMENT_STATE_MESSAGES = {
    "not_packaged": "لم يتم إنشاء طرد بعد",
    "packaged_pending_carrier": "تم إنشاء الطرد، بانتظار تأكيد شركة الشحن",
    "packaged_carrier_confirmed": "تم إنشاء الطرد وتأكيده من شركة الشحن",
}

# Placeholders used when composing carrier payloads
UNNAMED_PRODUCT = "منتج"
UNSPECIFIED = "غير محدد"
EMPTY_ORDER_DESCRIPTION = "طلب بدون منتجات"
ORDER_NOTE_TEMPLATE = "Order {order_number}"


def error_message(code: FulfillmentErrorCode) -> str:
    return ERROR_MESSAGES.get(code, UNKNOWN_ERROR)


def dispatch_failure_message(error: Optional[str], http_status: Optional[int]) -> str:
    """Friendlier text for common carrier outage statuses"""
    if http_status == 503:
        return CARRIER_UNAVAILABLE
    if http_status in (502, 504):
        return CARRIER_GATEWAY_ERROR
    if http_status is None and error and "timeout" in error.lower():
        return CARRIER_TIMEOUT
    return error or UNKNOWN_ERROR
