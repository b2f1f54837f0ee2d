"""Exception hierarchy shared by the parser and the step-matching engine"""
from typing import Any, List, Optional


class SpecbindError(Exception):
    """Base class for every error raised by specbind"""


class ParseError(SpecbindError):
    """Structural error in a specification; aborts the whole document parse"""

    def __init__(self, message: str, line: Optional[str] = None):
        super().__init__(message)
        self.line = line


class UnsupportedTypeError(SpecbindError):
    """A step-definition parameter has no inline type able to match it"""

    def __init__(self, parameter_type: Any, definition: Optional[str] = None):
        self.parameter_type = parameter_type
        self.definition = definition
        type_name = getattr(parameter_type, '__name__', repr(parameter_type))
        message = f"No inline type handles parameter type {type_name}"
        if definition:
            message += f" (step definition {definition})"
        super().__init__(message)


class UndefinedStepError(SpecbindError):
    """One or more steps matched no registered step definition"""

    def __init__(self, undefined: List[Any]):
        self.undefined = undefined
        lines = [f'  {result.step.text}' for result in undefined]
        super().__init__("Undefined steps:\n" + "\n".join(lines))


class InvocationError(SpecbindError):
    """A matched step definition raised while executing"""

    def __init__(self, step_text: str, cause: BaseException):
        self.step_text = step_text
        self.cause = cause
        super().__init__(f'Step "{step_text}" failed: {type(cause).__name__}: {cause}')


class ConfigurationError(SpecbindError):
    """Invalid configuration, language table or step module"""
