"""CustomerContact value object — who placed the order and how to reach them."""

import re

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import String

from bakery.domain import bakery

_PHONE = re.compile(r"^\+?[\d\s\-().]+$")


@bakery.value_object
class CustomerContact:
    """Name, email and phone captured with the inquiry.

    Email gets a structural check only (one ``@``, a dotted domain, no
    whitespace); phones may contain digits, spaces, dashes, dots and
    parentheses with an optional leading ``+``.
    """

    name = String(required=True, max_length=150)
    email = String(required=True, max_length=254)
    phone = String(max_length=30)

    @invariant.post
    def email_must_be_well_formed(self):
        email = self.email or ""
        local, _, domain = email.partition("@")
        if (
            any(ch.isspace() for ch in email)
            or email.count("@") != 1
            or not local
            or "." not in domain
            or domain.startswith(".")
            or domain.endswith(".")
            or ".." in email
        ):
            raise ValidationError({"customer_email": [f"Invalid email address: {email!r}"]})

    @invariant.post
    def phone_must_be_dialable(self):
        if not self.phone:
            return
        if not re.search(r"\d", self.phone) or not _PHONE.match(self.phone):
            raise ValidationError({"customer_phone": [f"Invalid phone number: {self.phone!r}"]})
