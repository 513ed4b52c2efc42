"""Rule-based merchant categorization.

Two static tables drive it: an MCC to category-name map (a curated subset of
the card-network registry) and an ordered category to keyword-list map for
merchants whose MCC is missing or unknown. The categorizer only produces
category names; turning a name into a database id is the job of the injected
resolver (see :func:`statement_ledger.categories.category_id_resolver`).
"""

from __future__ import annotations

from collections.abc import Callable, Mapping

from .logging_setup import get_logger

logger = get_logger("statement_ledger.categorizer")

type CategoryIdResolver = Callable[[str], int | None]

MCC_CATEGORIES: Mapping[str, str] = {
    # Groceries
    "5411": "Groceries",  # Grocery stores, supermarkets
    "5422": "Groceries",  # Freezer and locker meat provisioners
    "5441": "Groceries",  # Candy, nut and confectionery stores
    "5451": "Groceries",  # Dairy products stores
    "5462": "Groceries",  # Bakeries
    # Restaurants
    "5811": "Restaurants",  # Caterers
    "5812": "Restaurants",  # Eating places, restaurants
    "5813": "Restaurants",  # Bars, taverns
    "5814": "Restaurants",  # Fast food
    # Transportation
    "4111": "Transportation",  # Commuter passenger transport
    "4121": "Transportation",  # Taxicabs and limousines
    "4131": "Transportation",  # Bus lines
    "4789": "Transportation",  # Transportation services
    "5172": "Transportation",  # Petroleum products
    "5541": "Transportation",  # Service stations
    "5542": "Transportation",  # Automated fuel dispensers
    # Shopping
    "5311": "Shopping",  # Department stores
    "5651": "Shopping",  # Family clothing stores
    "5661": "Shopping",  # Shoe stores
    "5732": "Shopping",  # Electronics stores
    "5734": "Shopping",  # Computer software stores
    "5735": "Shopping",  # Record stores
    "5943": "Shopping",  # Stationery stores
    "5945": "Shopping",  # Hobby, toy and game shops
    # Entertainment
    "5815": "Entertainment",  # Digital goods: books, movies, music
    "5816": "Entertainment",  # Digital goods: games
    "5817": "Entertainment",  # Digital goods: applications
    "5818": "Entertainment",  # Digital goods: large merchants
    "5932": "Entertainment",  # Antique shops
    "7832": "Entertainment",  # Motion picture theaters
    "7841": "Entertainment",  # Video rental
    "7911": "Entertainment",  # Dance halls and studios
    "7922": "Entertainment",  # Theatrical producers, ticket agencies
    "7929": "Entertainment",  # Bands, orchestras
    "7932": "Entertainment",  # Billiards
    "7933": "Entertainment",  # Bowling alleys
    "7991": "Entertainment",  # Tourist attractions
    "7992": "Entertainment",  # Public golf courses
    "7993": "Entertainment",  # Video amusement supplies
    "7994": "Entertainment",  # Video game arcades
    "7995": "Entertainment",  # Betting, lottery
    "7996": "Entertainment",  # Amusement parks
    "7998": "Entertainment",  # Aquariums
    # Healthcare
    "5912": "Healthcare",  # Drug stores and pharmacies
    "5976": "Healthcare",  # Orthopedic goods
    "8011": "Healthcare",  # Doctors
    "8021": "Healthcare",  # Dentists
    "8031": "Healthcare",  # Osteopaths
    "8041": "Healthcare",  # Chiropractors
    "8042": "Healthcare",  # Optometrists
    "8043": "Healthcare",  # Opticians
    "8049": "Healthcare",  # Podiatrists
    "8050": "Healthcare",  # Nursing and personal care
    "8062": "Healthcare",  # Hospitals
    "8071": "Healthcare",  # Medical and dental laboratories
    # Utilities
    "4814": "Utilities",  # Telecommunication services
    "4816": "Utilities",  # Computer network services
    "4899": "Utilities",  # Cable and satellite TV
    "4900": "Utilities",  # Electric, gas, water
    # Travel
    "3000": "Travel",  # Airlines
    "3001": "Travel",  # American Airlines
    "3351": "Travel",  # Hilton Hotels
    "3501": "Travel",  # Holiday Inns
    "4511": "Travel",  # Air carriers
    "7011": "Travel",  # Hotels, motels, resorts
    "7512": "Travel",  # Car rental
    "7513": "Travel",  # Truck and trailer rental
    "7519": "Travel",  # Recreational vehicle rental
    # Education
    "5942": "Education",  # Book stores
    "8211": "Education",  # Schools
    "8220": "Education",  # Colleges, universities
    "8241": "Education",  # Correspondence schools
    "8244": "Education",  # Business schools
    "8249": "Education",  # Vocational schools
    "8299": "Education",  # Educational services
    # Sports
    "5655": "Sports",  # Sports apparel
    "5941": "Sports",  # Sporting goods
    "7012": "Sports",  # Timeshares
    "7997": "Sports",  # Membership clubs
    "7999": "Sports",  # Recreation services
    # Home
    "5021": "Home",  # Office furniture
    "5039": "Home",  # Construction materials
    "5046": "Home",  # Commercial equipment
    "5211": "Home",  # Lumber, building materials
    "5231": "Home",  # Glass, paint, wallpaper
    "5251": "Home",  # Hardware stores
    "5712": "Home",  # Furniture, home furnishings
    "5713": "Home",  # Floor coverings
    "5714": "Home",  # Drapery, upholstery
    "5718": "Home",  # Fireplaces
    # Beauty
    "5977": "Beauty",  # Cosmetic stores
    "7230": "Beauty",  # Barber and beauty shops
    "7297": "Beauty",  # Massage parlors
    "7298": "Beauty",  # Health and beauty spas
    # Pets
    "0742": "Pets",  # Veterinary services
    "5995": "Pets",  # Pet shops
    # Transfers
    "6012": "Transfers",  # Financial institutions
    # Cash
    "6010": "Cash",  # Manual cash disbursements
    "6011": "Cash",  # ATM cash
    # Fees
    "9311": "Fees",  # Tax payments
    "9399": "Fees",  # Government services
}

# Tested in this order; the first category with a matching keyword wins.
CATEGORY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (
        "Groceries",
        (
            "supermarket", "grocery", "market", "продукты", "магазин",
            "carrefour", "ашан", "пятёрочка", "перекрёсток", "магнит",
            "дикси", "лента", "окей", "metro",
        ),
    ),
    (
        "Restaurants",
        (
            "restaurant", "cafe", "coffee", "pizza", "burger", "sushi",
            "ресторан", "кафе", "кофе", "bar", "pub", "мак",
            "mcdonald", "kfc", "subway", "dominos", "starbucks",
            "delivery", "доставка", "яндекс еда", "деливери",
        ),
    ),
    (
        "Transportation",
        (
            "taxi", "uber", "yandex", "metro", "transport", "parking",
            "такси", "метро", "транспорт", "парковка", "azs", "газпром",
            "rosneft", "lukoil", "shell", "bp", "fuel", "бензин",
        ),
    ),
    (
        "Shopping",
        (
            "shop", "store", "clothing", "shoes", "electronics", "fashion",
            "магазин", "одежда", "обувь", "zara", "h&m", "wildberries",
            "ozon", "lamoda", "aliexpress", "amazon", "ebay",
        ),
    ),
    (
        "Entertainment",
        (
            "cinema", "movie", "theater", "game", "stream", "spotify",
            "netflix", "youtube", "кино", "theatre", "игр", "steam",
            "playstation", "xbox", "nintendo", "apple music",
        ),
    ),
    (
        "Healthcare",
        (
            "pharmacy", "hospital", "clinic", "doctor", "medical", "health",
            "аптека", "клиника", "врач", "медиц", "здоровье", "36.6",
            "ригла", "здравсити",
        ),
    ),
    (
        "Utilities",
        (
            "electric", "gas", "water", "internet", "telecom", "mobile",
            "электр", "газ", "вода", "интернет", "связь", "мобильн",
            "мтс", "билайн", "мегафон", "теле2", "ростелеком",
        ),
    ),
    (
        "Travel",
        (
            "hotel", "flight", "airline", "booking", "airbnb", "travel",
            "отель", "гостиниц", "авиа", "самолет", "туриз", "тур",
            "s7", "аэрофлот", "pobeda",
        ),
    ),
    (
        "Education",
        (
            "school", "university", "course", "education", "learning",
            "школ", "универ", "курс", "обучен", "образован", "udemy",
            "coursera", "skillbox",
        ),
    ),
    (
        "Sports",
        (
            "gym", "fitness", "sport", "спорт", "фитнес", "тренаж",
            "world class", "gold's gym", "спортмастер",
        ),
    ),
    (
        "Home",
        (
            "furniture", "ikea", "leroy", "obi", "мебель", "ремонт",
            "строй", "castorama", "hoff",
        ),
    ),
    (
        "Beauty",
        (
            "salon", "beauty", "cosmetic", "spa", "салон", "красот",
            "косметик", "парикмахер", "sephora", "л'этуаль", "рив гош",
        ),
    ),
    (
        "Pets",
        (
            "pet", "vet", "животн", "зоо", "ветеринар", "корм для",
            "четыре лапы", "бетховен",
        ),
    ),
    (
        "Gifts",
        (
            "gift", "flower", "подарок", "цвет", "букет", "donation",
            "благотворительн",
        ),
    ),
    (
        "Transfers",
        (
            "transfer", "перевод", "bank transfer", "p2p", "sbp",
            "система быстрых платежей",
        ),
    ),
    ("Cash", ("atm", "cash", "банкомат", "наличные", "снятие")),
    ("Fees", ("fee", "commission", "комиссия", "плата", "tax", "налог")),
)


def category_for_mcc(mcc_code: str | None) -> str | None:
    if not mcc_code:
        return None
    return MCC_CATEGORIES.get(mcc_code.strip())


def category_for_name(merchant_name: str | None) -> str | None:
    if not merchant_name:
        return None
    normalized = merchant_name.strip().lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in normalized for keyword in keywords):
            return category
    return None


def category_name_for(merchant_name: str | None, mcc_code: str | None) -> str | None:
    """Category name by MCC first, then by merchant-name keywords."""

    return category_for_mcc(mcc_code) or category_for_name(merchant_name)


class MerchantCategorizer:
    """Map a merchant to a category id through the static rule tables."""

    def __init__(self, resolve_category_id: CategoryIdResolver) -> None:
        self._resolve = resolve_category_id

    def auto_categorize(self, merchant_name: str | None, mcc_code: str | None) -> int | None:
        """Return a category id, or ``None`` when the merchant needs a human."""

        by_mcc = category_for_mcc(mcc_code)
        if by_mcc is not None:
            category_id = self._resolve(by_mcc)
            if category_id is not None:
                logger.debug("Categorized %r by MCC %s as %s", merchant_name, mcc_code, by_mcc)
                return category_id
        by_name = category_for_name(merchant_name)
        if by_name is not None:
            category_id = self._resolve(by_name)
            if category_id is not None:
                logger.debug("Categorized %r by name as %s", merchant_name, by_name)
                return category_id
        logger.debug("Could not auto-categorize merchant %r", merchant_name)
        return None


__all__ = [
    "CATEGORY_KEYWORDS",
    "MCC_CATEGORIES",
    "CategoryIdResolver",
    "MerchantCategorizer",
    "category_for_mcc",
    "category_for_name",
    "category_name_for",
]
