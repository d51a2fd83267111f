# Overview: User-facing Arabic messages shared by services and routes.

STORE_REQUIRED = "يجب تحديد المتجر"
STORE_NOT_FOUND = "المتجر غير موجود"
STORE_FORBIDDEN = "غير مسموح لك بالوصول إلى هذا المتجر"
USER_NOT_FOUND = "المستخدم غير موجود"
MERCHANT_NOT_FOUND = "التاجر غير موجود"

EMAIL_NOT_FOUND = "البريد الإلكتروني غير موجود"
EMAIL_INVALID = "البريد الإلكتروني غير صحيح"
EMAIL_TAKEN = "البريد الإلكتروني مسجل بالفعل"
PASSWORD_WRONG = "كلمة المرور غير صحيحة"
PASSWORD_TOO_SHORT = "كلمة المرور يجب أن تكون 6 أحرف على الأقل"
PHONE_INVALID = "رقم الجوال يجب أن يكون 9 أرقام"
PHONE_NOT_REGISTERED = "رقم الجوال غير مسجل"
PHONE_OR_PASSWORD_WRONG = "رقم الجوال أو كلمة المرور غير صحيحة"
PHONE_TAKEN = "رقم الجوال مسجل لعميل آخر"
ACCOUNT_INACTIVE = "حسابك غير مفعّل. يرجى التواصل مع الإدارة"
REGISTRATION_PENDING = "طلب التسجيل قيد المراجعة. يرجى الانتظار حتى يتم الموافقة عليه."
REGISTRATION_REJECTED = "تم رفض طلب التسجيل. يرجى التواصل مع المتجر"
REGISTRATION_RETRY = "فشل إنشاء الحساب. يرجى المحاولة مرة أخرى."
ALREADY_REGISTERED = "أنت مسجل بالفعل في هذا المتجر"
REGISTRATION_SUBMITTED = "تم إرسال طلب التسجيل بنجاح. سيتم مراجعته من قبل التاجر."
AUTH_REQUIRED = "يجب تسجيل الدخول أولاً"
SESSION_INVALID = "انتهت الجلسة. يرجى تسجيل الدخول مرة أخرى"
FORBIDDEN = "ليس لديك صلاحية لتنفيذ هذه العملية"

NAME_REQUIRED = "الاسم مطلوب"
ITEMS_REQUIRED = "يجب إضافة منتج واحد على الأقل"
AMOUNT_INVALID = "المبلغ يجب أن يكون أكبر من صفر"

CATEGORY_NAME_REQUIRED = "اسم التصنيف مطلوب"
CATEGORY_EXISTS = "التصنيف موجود بالفعل"
CATEGORY_NOT_FOUND = "التصنيف غير موجود أو لا ينتمي لهذا المتجر"
CATEGORY_IN_USE = "لا يمكن حذف التصنيف لأنه مستخدم في منتجات"

PRODUCT_NOT_FOUND = "المنتج غير موجود أو لا ينتمي لهذا المتجر"
PRODUCT_NOT_IN_STORE = "المنتج {product_id} غير موجود في هذا المتجر"
PRODUCT_ID_NOT_FOUND = "المنتج {product_id} غير موجود أو لا ينتمي لهذا المتجر"
STOCK_INSUFFICIENT = "المخزون غير كافي للمنتج {name}. المتوفر: {available}, المطلوب: {requested}"

CUSTOMER_NOT_FOUND = "العميل غير موجود"
CUSTOMER_NOT_ACTIVE_IN_STORE = "العميل غير مسجل في هذا المتجر أو غير نشط"
RELATION_NOT_FOUND = "علاقة العميل بالمتجر غير موجودة"
BALANCE_INSUFFICIENT = "رصيد العميل غير كافي. الرصيد المتاح: {available} ر.س، المطلوب: {requested} ر.س"
BALANCE_REQUEST_NOT_FOUND = "طلب تعبئة الرصيد غير موجود"
REQUEST_ALREADY_PROCESSED = "تم معالجة هذا الطلب مسبقاً"
PAYMENT_METHOD_INVALID = "طريقة الدفع غير صحيحة"

CREDIT_SALE_DUE_NAME = "فاتورة بيع آجل رقم {sale_id}"
CREDIT_SALE_ITEM_NAME = "فاتورة بيع"
PURCHASE_ITEM_NAME = "فاتورة شراء"

ORDER_NOT_FOUND = "الطلب غير موجود"
ORDER_NOT_PENDING = "الطلب غير قيد الانتظار"
ORDER_STATUS_INVALID = "حالة الطلب غير صحيحة"

SUPPLIER_NOT_FOUND = "المورد غير موجود أو لا ينتمي لهذا المتجر"
PURCHASE_NOT_FOUND = "الشراء غير موجود أو لا ينتمي لهذا المتجر"
DUE_DATE_REQUIRED = "يجب تحديد تاريخ الاستحقاق للفواتير الآجلة"
DUE_PAYMENT_NOT_FOUND = "الدين غير موجود أو لا ينتمي لهذا المتجر"
EXPENSE_NOT_FOUND = "المصروف غير موجود أو لا ينتمي لهذا المتجر"
RENT_NOT_FOUND = "الإيجار غير موجود أو لا ينتمي لهذا المتجر"
RENT_ITEM_NOT_FOUND = "عنصر الإيجار غير موجود أو لا ينتمي لهذا المتجر"
OFFER_NOT_FOUND = "العرض غير موجود أو لا ينتمي لهذا المتجر"
SALARY_NOT_FOUND = "الراتب غير موجود أو لا ينتمي لهذا المتجر"
SALE_NOT_FOUND = "الفاتورة غير موجودة أو لا تنتمي لهذا المتجر"
EMPLOYEE_NOT_IN_STORE = "الموظف غير موجود في هذا المتجر"
GENERAL_REQUEST_NOT_FOUND = "الطلب غير موجود"

CURRENCY_NOT_FOUND = "عملة غير موجودة"

PLAN_NOT_FOUND = "الباقة غير موجودة"
SUBSCRIPTION_REQUEST_NOT_FOUND = "طلب الاشتراك غير موجود"
SUBSCRIPTION_ALREADY_PROCESSED = "الطلب تم معالجته مسبقاً"
SUBSCRIPTION_NONE = "لا يوجد اشتراك فعال"
SUBSCRIPTION_EXPIRED = "انتهى الاشتراك"
SUBSCRIPTION_PENDING = "الاشتراك قيد المراجعة"
SUBSCRIPTION_SUSPENDED = "الاشتراك موقوف"

MIGRATIONS_APPLIED = "تم تطبيق التحديثات بنجاح"
INTERNAL_ERROR = "حدث خطأ غير متوقع"

MERCHANT_REGISTERED = "تم إنشاء الحساب بنجاح. سيتم مراجعته من قبل مدير المنصة."
DB_CONNECTION_FAILED = "فشل الاتصال بقاعدة البيانات. يرجى المحاولة مرة أخرى."
ROLE_INVALID = "الدور غير صحيح"
