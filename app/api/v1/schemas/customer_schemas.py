"""
Modelos Pydantic para el perfil de cliente.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel

from .order_schemas import AddressIn


class CustomerUpdateRequest(BaseModel):
    """
    Cuerpo de PATCH /api/customers/{id}.

    Solo se aplican los campos enviados; `address.country` por defecto es US.
    """

    given_name: Optional[str] = None
    family_name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    address: Optional[AddressIn] = None

    def local_fields(self) -> Dict[str, Any]:
        """Columnas locales del usuario para los campos enviados."""
        sent = self.model_dump(exclude_unset=True)
        fields = {name: sent[name] for name in ("given_name", "family_name", "email", "phone_number") if name in sent}

        if self.address is not None:
            address = self.address
            fields.update(
                {
                    "address_line_1": address.address_line_1,
                    "address_line_2": address.address_line_2,
                    "city": address.locality,
                    "state": address.administrative_district_level_1,
                    "postal_code": address.postal_code,
                    "country": address.country or "US",
                }
            )
        return fields

    def square_attributes(self) -> Dict[str, Any]:
        """Atributos parciales para actualizar el cliente en Square."""
        sent = self.model_dump(exclude_unset=True)
        attributes: Dict[str, Any] = {
            name: sent[name] for name in ("given_name", "family_name", "phone_number") if name in sent
        }
        if "email" in sent:
            attributes["email_address"] = sent["email"]

        if self.address is not None:
            address = self.address.model_dump(exclude_none=True)
            address["country"] = address.get("country") or "US"
            attributes["address"] = address
        return attributes
