from .validators import (check_form, validate_email, validate_form,
                         validate_identifier, validate_password,
                         validate_username)

__all__ = [
    'check_form',
    'validate_email',
    'validate_form',
    'validate_identifier',
    'validate_password',
    'validate_username',
]
