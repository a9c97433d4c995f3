import enum

class Unit(str, enum.Enum):
    kg = "kg"
    sack20 = "sack20"
    sack50 = "sack50"

class ProductType(str, enum.Enum):
    gateau = "gateau"
    croissant = "croissant"
    pain = "pain"
