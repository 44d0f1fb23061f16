from decimal import Decimal
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

class PaymentRequest(BaseModel):
    """Body sent to the payment gateway; the amount travels as an exact decimal string"""
    model_config = ConfigDict(populate_by_name=True)

    account_id: int = Field(alias="accountId")
    amount: Decimal

class GatewayResponse(BaseModel):
    """Body returned by the payment gateway"""
    success: bool = Field(validation_alias=AliasChoices("success", "Success"))
    message: Optional[str] = Field(default=None, validation_alias=AliasChoices("message", "Message"))

class PaymentResult(BaseModel):
    is_success: bool
    new_balance: Optional[Decimal] = None
    error_message: Optional[str] = None
    error_code: Optional[str] = None

    @model_validator(mode="after")
    def _success_xor_failure(self):
        if self.is_success and (self.new_balance is None or self.error_message is not None):
            raise ValueError("a successful result carries a balance and no error")
        if not self.is_success and (self.error_message is None or self.new_balance is not None):
            raise ValueError("a failed result carries an error message and no balance")
        return self

    @classmethod
    def success(cls, new_balance: Decimal) -> "PaymentResult":
        return cls(is_success=True, new_balance=new_balance)

    @classmethod
    def failed(cls, error_code: str, error_message: str) -> "PaymentResult":
        return cls(is_success=False, error_code=error_code, error_message=error_message)
