"""
Manufacturing Domain - Manufacturing Orders and Material Requirements.

This domain handles the manufacturing order lifecycle:
- A BOM lists the components needed per unit of a product, with scrap allowance
- A Manufacturing Order requests a quantity of that product
- Orders move draft -> confirmed -> in_progress -> completed, or are cancelled
- Confirmation requires every component to be available net of reservations
"""
