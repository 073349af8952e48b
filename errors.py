class ShopError(Exception):
    """Base error carrying the HTTP status it maps to."""

    status_code = 500
    message = "Internal server error"

    def __init__(self, message=None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidRequest(ShopError):
    status_code = 400
    message = "Invalid request"


class InvalidId(InvalidRequest):
    def __init__(self, value):
        self.value = value
        super().__init__(f"Invalid id: {value!r}")


class EmptyCart(InvalidRequest):
    message = "Order must contain at least one item"


class InsufficientSpaces(InvalidRequest):
    def __init__(self, subject, requested, available=None):
        self.subject = subject
        self.requested = requested
        self.available = available
        if available is None:
            msg = f"Not enough spaces left for {subject}"
        else:
            msg = f"Not enough spaces for {subject}: requested {requested}, available {available}"
        super().__init__(msg)


class NotFound(ShopError):
    status_code = 404
    message = "Not found"


class LessonNotFound(NotFound):
    def __init__(self, lesson_id):
        self.lesson_id = lesson_id
        super().__init__(f"Lesson {lesson_id} not found")


class ImageNotFound(NotFound):
    message = "Image not found"
