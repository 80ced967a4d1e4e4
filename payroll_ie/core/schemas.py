"""
Schema Registry for uploadable payroll configuration.
Provides consistent row validation for band tables and rosters.
"""
from typing import Dict, Any

class SchemaRegistry:
    """Registry of JSON-style schemas for all uploadable entity types."""

    def __init__(self):
        self.schemas = self._initialize_schemas()

    def get_schema(self, entity_type: str) -> Dict[str, Any]:
        """Get schema for entity type."""
        if entity_type not in self.schemas:
            raise ValueError(f"Schema not found for entity type: {entity_type}")
        return self.schemas[entity_type]

    def _initialize_schemas(self) -> Dict[str, Dict[str, Any]]:
        return {
            'tax_bands': self._tax_band_schema(),
            'employees': self._employee_schema(),
        }

    def _tax_band_schema(self) -> Dict[str, Any]:
        """Schema for marginal tax band rows. A blank upper bound means unbounded."""
        return {
            "type": "object",
            "required": ["tax_year", "tax_kind", "income_lower", "rate"],
            "properties": {
                "tax_year": {
                    "type": "integer",
                    "minimum": 2000,
                    "maximum": 2100,
                    "example": 2025
                },
                "tax_kind": {
                    "type": "string",
                    "enum": ["PAYE", "PRSI", "USC"],
                    "example": "USC"
                },
                "band_name": {
                    "type": "string",
                    "maxLength": 50,
                    "example": "Band 1"
                },
                "income_lower": {
                    "type": "number",
                    "minimum": 0,
                    "example": 0.00
                },
                "income_upper": {
                    "type": "number",
                    "minimum": 0,
                    "example": 12012.00
                },
                "rate": {
                    "type": "number",
                    "minimum": 0,
                    "maximum": 1,
                    "example": 0.005
                },
                "effective_from": {
                    "type": "string",
                    "format": "date",
                    "example": "2025-01-01"
                },
                "effective_to": {
                    "type": "string",
                    "format": "date",
                    "example": "2025-12-31"
                },
                "is_active": {
                    "type": "boolean",
                    "example": True
                }
            }
        }

    def _employee_schema(self) -> Dict[str, Any]:
        """Schema for the payroll roster."""
        return {
            "type": "object",
            "required": ["employee_id", "gross_salary", "pay_frequency"],
            "properties": {
                "employee_id": {
                    "type": "string",
                    "minLength": 1,
                    "maxLength": 36,
                    "example": "EMP001"
                },
                "full_name": {
                    "type": "string",
                    "maxLength": 200,
                    "example": "Aoife Byrne"
                },
                "gross_salary": {
                    "type": "number",
                    "minimum": 0,
                    "example": 3000.00
                },
                "pay_frequency": {
                    "type": "string",
                    "enum": ["weekly", "monthly"],
                    "example": "monthly"
                },
                "tax_credits_annual": {
                    "type": "number",
                    "minimum": 0,
                    "example": 4000.00
                },
                "is_active": {
                    "type": "boolean",
                    "example": True
                }
            }
        }
