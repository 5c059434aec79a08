"""
calculate_tax - Tax for an amount at a given rate

Pure arithmetic, no I/O. ``rate`` is a decimal fraction (0.08 for 8%).
"""

from typing import Any

from pydantic import BaseModel, Field

from toolgate.tools.base import BaseTool, LocalToolDefinition


class TaxParameters(BaseModel):
    amount: float = Field(..., ge=0, strict=True)
    rate: float = Field(..., ge=0, le=1, strict=True)
    currency: str = Field(default="USD", min_length=3, max_length=3)


class CalculateTaxTool(BaseTool):

    @property
    def definition(self) -> LocalToolDefinition:
        return LocalToolDefinition(
            name="calculate_tax",
            description="Calculate tax for a given amount and rate",
            input_schema={
                "type": "object",
                "properties": {
                    "amount": {"type": "number", "description": "The amount to calculate tax for"},
                    "rate": {"type": "number", "description": "Tax rate as decimal (e.g., 0.08 for 8%)"},
                    "currency": {"type": "string", "description": "Currency code", "default": "USD"},
                },
                "required": ["amount", "rate"],
            },
            structured_schema=TaxParameters,
            executor=self.execute,
        )

    async def execute(self, parameters: dict[str, Any]) -> dict[str, Any]:
        params = TaxParameters.model_validate(parameters)
        tax_amount = round(params.amount * params.rate, 2)
        total_amount = round(params.amount + tax_amount, 2)

        return {
            "originalAmount": params.amount,
            "taxRate": params.rate,
            "taxAmount": tax_amount,
            "totalAmount": total_amount,
            "currency": params.currency.upper(),
            "calculation": f"{params.amount} + ({params.amount} x {params.rate}) = {total_amount}",
        }


__all__ = ["CalculateTaxTool", "TaxParameters"]
