class AppStatusCode:
    # success
    DATA_RETRIEVED_SUCCESSFULLY = "100"
    OPERATION_SUCCESSFUL = "101"
    CREATED_SUCCESSFULLY = "102"

    # client side
    INVALID_INPUT = "200"
    REQUIRED_VALIDATION_ERROR = "201"
    DUPLICATE_ADD_ERROR = "202"
    RESOURCE_NOT_FOUND = "203"
    RESOURCE_DELETED = "204"

    # auth
    AUTHENTICATION_TOKEN_INVALID = "300"
    AUTHENTICATION_TOKEN_EXPIRED = "301"
    AUTHENTICATION_USER_INVALID = "302"
    AUTHENTICATION_USER_INACTIVE = "303"
    ACCESS_FORBIDDEN = "304"

    # server side
    OPERATION_FAILED = "500"
    BARCODE_UNIQUENESS_EXHAUSTED = "501"
    BARCODE_ARTIFACT_FAILED = "502"
