from pydantic import BaseModel, EmailStr, Field


class PrebookRequest(BaseModel):
    offer_id: str | None = None
    use_payment_sdk: bool = True


class BookingHolder(BaseModel):
    first_name: str
    last_name: str
    email: EmailStr
    phone: str | None = None


class BookingGuest(BaseModel):
    occupancy_number: int = Field(ge=1)
    first_name: str
    last_name: str
    email: EmailStr


class BookingPayment(BaseModel):
    method: str = "TRANSACTION_ID"
    transaction_id: str | None = None


class BookRequest(BaseModel):
    prebook_id: str | None = None
    holder: BookingHolder | None = None
    payment: BookingPayment | None = None
    guests: list[BookingGuest] = []

    def to_provider_body(self) -> dict:
        return {
            "prebookId": self.prebook_id,
            "holder": {
                "firstName": self.holder.first_name,
                "lastName": self.holder.last_name,
                "email": self.holder.email,
                **({"phone": self.holder.phone} if self.holder.phone else {}),
            },
            "payment": {"method": self.payment.method, "transactionId": self.payment.transaction_id},
            "guests": [
                {
                    "occupancyNumber": guest.occupancy_number,
                    "firstName": guest.first_name,
                    "lastName": guest.last_name,
                    "email": guest.email,
                }
                for guest in self.guests
            ],
        }


class PromoValidateRequest(BaseModel):
    code: str | None = None
    offer_id: str | None = None


class PromoValidateResponse(BaseModel):
    valid: bool
    message: str
    type: str | None = None
    value: float | None = None
    currency: str | None = None
