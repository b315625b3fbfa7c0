"""
Исключения домена обработки изображений.

Иерархия:
  ImageProcessingError
  ├── DecodeError
  │   ├── UnreadableFileError
  │   └── UnsupportedOrCorruptError
  ├── OperationError
  │   ├── InvalidDimensionsError
  │   └── OutOfBoundsError
  ├── EncodeError
  │   └── UnsupportedFormatError   (восстанавливается через fallback)
  ├── ImageIOError
  ├── ContractValidationError
  ├── ProcessingTimeoutError
  └── ProcessingCancelledError

Стадии бросают эти исключения, оркестратор превращает их в Failure.
"""

from typing import Any, Dict, List, Optional, Union


class ImageProcessingError(Exception):
    """Базовое исключение для ошибок обработки изображений."""

    error_code = "processing_error"

    def __init__(
        self,
        message: str,
        component: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        self.message = message
        self.component = component
        self.original_error = original_error
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = f"Image Processing Error: {self.message}"
        if self.component:
            msg += f" (Component: {self.component})"
        if self.original_error:
            msg += f" [Original: {type(self.original_error).__name__}: {str(self.original_error)}]"
        return msg


class DecodeError(ImageProcessingError):
    """Ошибка декодирования изображения."""
    error_code = "decode_error"


class UnreadableFileError(DecodeError):
    """Файл не существует или не читается."""
    error_code = "unreadable_file"


class UnsupportedOrCorruptError(DecodeError):
    """Байты не распознаны ни как один известный формат изображения."""
    error_code = "unsupported_or_corrupt"


class OperationError(ImageProcessingError):
    """Ошибка при применении операции."""

    error_code = "operation_error"

    def __init__(
        self,
        message: str,
        component: Optional[str] = None,
        original_error: Optional[Exception] = None,
        operation: Optional[Any] = None
    ):
        self.operation = operation
        super().__init__(message, component, original_error)


class InvalidDimensionsError(OperationError):
    """Недопустимые целевые размеры (<= 0)."""
    error_code = "invalid_dimensions"


class OutOfBoundsError(OperationError):
    """Область операции выходит за границы изображения."""
    error_code = "out_of_bounds"


class EncodeError(ImageProcessingError):
    """Ошибка кодирования изображения."""
    error_code = "encode_error"


class UnsupportedFormatError(EncodeError):
    """Формат не поддерживает нативное кодирование."""
    error_code = "unsupported_format"


class ImageIOError(ImageProcessingError):
    """Ошибка файловой системы при чтении/записи."""
    error_code = "io_error"


class ProcessingTimeoutError(ImageProcessingError):
    """Обработка не уложилась в дедлайн вызывающей стороны."""
    error_code = "timeout"


class ProcessingCancelledError(ImageProcessingError):
    """Обработка отменена вызывающей стороной."""
    error_code = "cancelled"


class ContractValidationError(ImageProcessingError):
    """Нарушение контракта (используется вместо Pydantic ValidationError)."""

    error_code = "contract_violation"

    def __init__(self, stage_name: str, contract_name: str, errors: Union[List[Dict[str, Any]], List[Any]]) -> None:
        self.stage_name = stage_name
        self.contract_name = contract_name
        self.errors = errors

        error_messages = []
        for err in errors:
            if isinstance(err, dict):
                loc = err.get('loc', [])[0] if err.get('loc') else 'unknown'
                err_type = err.get('type', 'unknown')
                msg = err.get('msg', 'unknown error')
                error_messages.append(f"  {loc} ({err_type}): {msg}")
            else:
                error_messages.append(f"  {str(err)}")

        super().__init__(
            message=f"Contract {contract_name} violated:\n" + "\n".join(error_messages),
            component=stage_name
        )
