"""
Deterministic Schema.org JSON-LD generation.

The generative service only extracts business facts; everything here is a pure function of those
facts so the structured data never depends on model formatting.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

SCHEMA_CONTEXT = "https://schema.org"


@dataclass(frozen=True)
class SchemaTypeDefinition:
    type: str
    parent: Optional[str]
    properties: tuple[str, ...]
    keywords: tuple[str, ...] = ()


@dataclass
class BusinessFacts:
    """Facts about a business, as extracted from page HTML or supplied by the caller."""

    business_name: str
    business_type: str
    description: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    street_address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    geo: Optional[tuple[float, float]] = None
    hours: Optional[str] = None
    price_range: Optional[str] = None
    rating: Optional[tuple[float, int]] = None
    testimonials: list[dict[str, str]] = field(default_factory=list)
    services: list[str] = field(default_factory=list)
    pricing: list[dict[str, str]] = field(default_factory=list)
    menu_items: list[dict[str, str]] = field(default_factory=list)
    faqs: list[dict[str, str]] = field(default_factory=list)
    site_url: Optional[str] = None
    social_image: Optional[str] = None


_THING = ("name", "description", "image", "url")
_LOCAL_BUSINESS = (
    "name",
    "description",
    "image",
    "telephone",
    "email",
    "address",
    "priceRange",
    "openingHours",
    "aggregateRating",
    "geo",
)
_STORE = _LOCAL_BUSINESS + ("paymentAccepted", "currenciesAccepted")
_FOOD = _LOCAL_BUSINESS + ("servesCuisine", "menu", "acceptsReservations")
_MEDICAL = _LOCAL_BUSINESS + ("medicalSpecialty", "availableService", "isAcceptingNewPatients")
_LODGING = _LOCAL_BUSINESS + ("amenityFeature", "checkinTime", "checkoutTime", "numberOfRooms", "petsAllowed")
_EVENT = (
    "name",
    "description",
    "startDate",
    "endDate",
    "location",
    "organizer",
    "image",
    "offers",
    "eventStatus",
    "eventAttendanceMode",
)
_CONTACTABLE = ("name", "description", "telephone", "email", "address")


def _registry(*rows: tuple[str, Optional[str], tuple[str, ...], tuple[str, ...]]) -> dict[str, SchemaTypeDefinition]:
    return {
        name: SchemaTypeDefinition(type=name, parent=parent, properties=props, keywords=keywords)
        for name, parent, props, keywords in rows
    }


def _kw(text: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in text.split("|"))


SCHEMA_REGISTRY: dict[str, SchemaTypeDefinition] = _registry(
    ("Thing", None, _THING, ()),
    # Creative works
    ("CreativeWork", "Thing", ("name", "description", "author", "datePublished", "dateModified"), _kw("content|media|publication")),
    ("WebPage", "CreativeWork", ("name", "description", "url", "image", "datePublished", "dateModified", "author", "keywords"), ("any",)),
    ("Article", "CreativeWork", ("headline", "description", "articleBody", "author", "datePublished", "dateModified", "image", "articleSection"), _kw("blog|news|magazine|article|post")),
    ("BlogPosting", "Article", ("headline", "description", "articleBody", "author", "datePublished", "image"), _kw("blog|blog post|blogger|blogging")),
    ("NewsArticle", "Article", ("headline", "dateline", "articleBody", "author", "datePublished"), _kw("news|newspaper|journalism|press|media")),
    ("FAQPage", "WebPage", ("name", "description", "mainEntity"), _kw("faq|questions|help|support")),
    ("HowTo", "CreativeWork", ("name", "description", "totalTime", "step", "supply", "tool"), _kw("how to|tutorial|guide|instructions|diy")),
    ("Recipe", "HowTo", ("name", "description", "recipeIngredient", "recipeInstructions", "prepTime", "cookTime", "totalTime", "recipeYield", "recipeCuisine", "recipeCategory", "nutrition", "image"), _kw("recipe|cooking|food blog|cookbook")),
    ("Course", "CreativeWork", ("name", "description", "provider", "courseCode", "coursePrerequisites", "educationalLevel", "hasCourseInstance"), _kw("course|class|training|education|online course|e-learning")),
    ("Book", "CreativeWork", ("name", "author", "isbn", "numberOfPages", "bookFormat", "publisher", "datePublished"), _kw("book|ebook|author|publisher|bookstore")),
    ("Movie", "CreativeWork", ("name", "director", "actor", "duration", "datePublished", "productionCompany"), _kw("movie|film|cinema|video production")),
    ("MusicRecording", "CreativeWork", ("name", "byArtist", "duration", "inAlbum", "recordingOf"), _kw("music|song|album|recording studio|musician")),
    ("SoftwareSourceCode", "CreativeWork", ("name", "codeRepository", "programmingLanguage", "runtimePlatform", "targetProduct"), _kw("open source|github|code|programming|developer tools")),
    ("Menu", "CreativeWork", ("name", "description", "hasMenuSection", "hasMenuItem"), _kw("menu|food menu|restaurant menu")),
    ("Review", "CreativeWork", ("reviewBody", "author", "datePublished", "reviewRating", "itemReviewed"), _kw("review|reviews|testimonial")),
    ("SoftwareApplication", "CreativeWork", ("name", "description", "applicationCategory", "operatingSystem", "offers", "aggregateRating", "downloadUrl"), _kw("saas|app|software|tech startup|application|platform")),
    ("AboutPage", "WebPage", ("name", "description", "url"), _kw("about|about us|about me|our story|who we are|our team|our mission")),
    ("ContactPage", "WebPage", _CONTACTABLE, ("contact",)),
    # Organizations and local businesses
    ("Organization", "Thing", ("name", "description", "url", "logo", "email", "telephone", "address", "sameAs"), _kw("company|organization|nonprofit|corporation")),
    ("LocalBusiness", "Organization", _LOCAL_BUSINESS, _kw("local business|small business|shop|service")),
    ("Store", "LocalBusiness", _STORE, _kw("store|retail|shop|shopping")),
    ("AutoPartsStore", "Store", _STORE, _kw("auto parts|car parts|automotive parts|vehicle parts")),
    ("BikeStore", "Store", _STORE, _kw("bike shop|bicycle store|bike store|cycling shop|bicycle shop")),
    ("BookStore", "Store", _STORE, _kw("bookstore|book shop|books|bookshop")),
    ("ClothingStore", "Store", _STORE, _kw("clothing store|apparel|fashion|clothes shop|boutique")),
    ("ComputerStore", "Store", _STORE, _kw("computer store|pc shop|computer shop|tech store")),
    ("ConvenienceStore", "Store", _STORE, _kw("convenience store|corner store|mini mart|bodega")),
    ("DepartmentStore", "Store", _STORE, _kw("department store|large store|retail chain")),
    ("ElectronicsStore", "Store", _STORE, _kw("electronics store|electronics shop|gadget store|tech shop")),
    ("Florist", "Store", _STORE, _kw("florist|flower shop|flowers|floral shop|flower store")),
    ("FurnitureStore", "Store", _STORE, _kw("furniture store|furniture shop|home furnishings")),
    ("GardenStore", "Store", _STORE, _kw("garden store|garden center|nursery|plant shop|gardening")),
    ("GroceryStore", "Store", _STORE, _kw("grocery store|supermarket|grocery|food store|market")),
    ("HardwareStore", "Store", _STORE, _kw("hardware store|home improvement|tools|diy store")),
    ("HobbyShop", "Store", _STORE, _kw("hobby shop|hobby store|craft store|model shop")),
    ("HomeGoodsStore", "Store", _STORE, _kw("home goods|housewares|home store|home decor")),
    ("JewelryStore", "Store", _STORE, _kw("jewelry store|jeweler|jewelry shop|jewellery")),
    ("LiquorStore", "Store", _STORE, _kw("liquor store|wine shop|spirits|bottle shop|wine store")),
    ("MensClothingStore", "Store", _STORE, _kw("mens clothing|menswear|mens fashion|mens apparel")),
    ("MobilePhoneStore", "Store", _STORE, _kw("phone store|mobile store|cell phone|smartphone")),
    ("MovieRentalStore", "Store", _STORE, _kw("movie rental|video rental|dvd rental")),
    ("MusicStore", "Store", _STORE, _kw("music store|record store|instrument store|vinyl|music shop")),
    ("OfficeEquipmentStore", "Store", _STORE, _kw("office supplies|office equipment|stationery")),
    ("OutletStore", "Store", _STORE, _kw("outlet|outlet store|factory outlet|discount store")),
    ("PawnShop", "Store", _STORE, _kw("pawn shop|pawnbroker|pawn store")),
    ("PetStore", "Store", _STORE, _kw("pet store|pet shop|pet supplies|pet supply")),
    ("ShoeStore", "Store", _STORE, _kw("shoe store|footwear|shoe shop|shoes")),
    ("SportingGoodsStore", "Store", _STORE, _kw("sporting goods|sports store|athletic store|sports equipment")),
    ("TireShop", "Store", _STORE, _kw("tire shop|tire store|tires|wheel shop")),
    ("ToyStore", "Store", _STORE, _kw("toy store|toy shop|toys|game store")),
    ("WholesaleStore", "Store", _STORE, _kw("wholesale|bulk store|warehouse store|wholesale club")),
    # Food
    ("FoodEstablishment", "LocalBusiness", _FOOD, _kw("food|dining|eatery")),
    ("Bakery", "FoodEstablishment", _FOOD, _kw("bakery|baker|pastry shop|bread shop|baked goods")),
    ("BarOrPub", "FoodEstablishment", _FOOD, _kw("bar|pub|tavern|lounge|cocktail bar|sports bar")),
    ("Brewery", "FoodEstablishment", _FOOD, _kw("brewery|craft brewery|brewpub|beer|microbrewery")),
    ("CafeOrCoffeeShop", "FoodEstablishment", _FOOD, _kw("cafe|coffee shop|coffee house|coffeeshop|espresso bar|coffee")),
    ("Distillery", "FoodEstablishment", _FOOD, _kw("distillery|spirits|whiskey|vodka|gin")),
    ("FastFoodRestaurant", "FoodEstablishment", _FOOD, _kw("fast food|quick service|drive through|drive thru")),
    ("IceCreamShop", "FoodEstablishment", _FOOD, _kw("ice cream|ice cream shop|gelato|frozen yogurt|froyo")),
    ("Restaurant", "FoodEstablishment", _FOOD, _kw("restaurant|dining|bistro|eatery|grill|diner")),
    ("Winery", "FoodEstablishment", _FOOD, _kw("winery|vineyard|wine tasting|wine|wine bar")),
    ("MenuItem", "Thing", ("name", "description", "offers", "nutrition", "suitableForDiet"), _kw("menu item|dish|food item")),
    ("Reservation", "Thing", ("reservationId", "reservationStatus", "underName"), _kw("reservation|booking")),
    ("FoodEstablishmentReservation", "Reservation", ("reservationFor", "partySize", "startTime", "provider"), _kw("table reservation|restaurant booking|dinner reservation")),
    # Medical
    ("MedicalBusiness", "LocalBusiness", _MEDICAL, _kw("medical|healthcare|health care|clinic")),
    ("CommunityHealth", "MedicalBusiness", _MEDICAL, _kw("community health|public health center|community clinic")),
    ("Dentist", "MedicalBusiness", _MEDICAL, _kw("dentist|dental|dental clinic|dental office|teeth|orthodontist")),
    ("Dermatology", "MedicalBusiness", _MEDICAL, _kw("dermatology|dermatologist|skin doctor|skin care clinic")),
    ("DietNutrition", "MedicalBusiness", _MEDICAL, _kw("nutritionist|dietitian|nutrition|diet clinic|weight loss clinic")),
    ("Emergency", "MedicalBusiness", _MEDICAL, _kw("emergency room|urgent care|er|emergency clinic")),
    ("Geriatric", "MedicalBusiness", _MEDICAL, _kw("geriatric|senior care|elderly care|geriatrician")),
    ("Gynecologic", "MedicalBusiness", _MEDICAL, _kw("gynecologist|gynecology|obgyn|women health")),
    ("MedicalClinic", "MedicalBusiness", _MEDICAL, _kw("medical clinic|clinic|health clinic|walk in clinic")),
    ("Midwifery", "MedicalBusiness", _MEDICAL, _kw("midwife|midwifery|birth center|birthing center")),
    ("Nursing", "MedicalBusiness", _MEDICAL, _kw("nursing home|nursing facility|skilled nursing")),
    ("Obstetric", "MedicalBusiness", _MEDICAL, _kw("obstetrician|obstetrics|prenatal care|maternity")),
    ("Oncologic", "MedicalBusiness", _MEDICAL, _kw("oncologist|oncology|cancer center|cancer treatment")),
    ("Optician", "MedicalBusiness", _MEDICAL, _kw("optician|eyeglasses|glasses shop|optical")),
    ("Optometric", "MedicalBusiness", _MEDICAL, _kw("optometrist|eye doctor|vision care|eye exam")),
    ("Otolaryngologic", "MedicalBusiness", _MEDICAL, _kw("ent|ear nose throat|otolaryngologist|ent doctor")),
    ("Pediatric", "MedicalBusiness", _MEDICAL, _kw("pediatrician|pediatrics|children doctor|kids doctor")),
    ("Pharmacy", "MedicalBusiness", _MEDICAL, _kw("pharmacy|drugstore|chemist|apothecary|prescription")),
    ("Physician", "MedicalBusiness", _MEDICAL, _kw("doctor|physician|md|doctor office|family doctor")),
    ("Physiotherapy", "MedicalBusiness", _MEDICAL, _kw("physical therapy|physiotherapy|pt|rehab|rehabilitation")),
    ("PlasticSurgery", "MedicalBusiness", _MEDICAL, _kw("plastic surgery|cosmetic surgery|plastic surgeon")),
    ("Podiatric", "MedicalBusiness", _MEDICAL, _kw("podiatrist|podiatry|foot doctor|foot care")),
    ("PrimaryCare", "MedicalBusiness", _MEDICAL, _kw("primary care|family medicine|general practitioner|gp")),
    ("Psychiatric", "MedicalBusiness", _MEDICAL, _kw("psychiatrist|psychiatry|mental health|psychiatric clinic")),
    ("PublicHealth", "MedicalBusiness", _MEDICAL, _kw("public health|health department|public clinic")),
    # Automotive
    ("AutomotiveBusiness", "LocalBusiness", _LOCAL_BUSINESS, _kw("automotive|car business|vehicle")),
    ("AutoBodyShop", "AutomotiveBusiness", _LOCAL_BUSINESS, _kw("auto body|body shop|collision repair|auto paint")),
    ("AutoDealer", "AutomotiveBusiness", _LOCAL_BUSINESS, _kw("car dealer|auto dealer|car dealership|used cars|new cars")),
    ("AutoRental", "AutomotiveBusiness", _LOCAL_BUSINESS, _kw("car rental|auto rental|rent a car|vehicle rental")),
    ("AutoRepair", "AutomotiveBusiness", _LOCAL_BUSINESS, _kw("auto repair|car repair|mechanic|auto shop|garage|car mechanic")),
    ("AutoWash", "AutomotiveBusiness", _LOCAL_BUSINESS, _kw("car wash|auto wash|auto detailing|car detailing")),
    ("GasStation", "AutomotiveBusiness", _LOCAL_BUSINESS, _kw("gas station|petrol station|fuel station|service station")),
    ("MotorcycleDealer", "AutomotiveBusiness", _LOCAL_BUSINESS, _kw("motorcycle dealer|motorcycle shop|bike dealer|harley")),
    ("MotorcycleRepair", "AutomotiveBusiness", _LOCAL_BUSINESS, _kw("motorcycle repair|bike repair|motorcycle mechanic")),
    # Home and construction
    ("HomeAndConstructionBusiness", "LocalBusiness", _LOCAL_BUSINESS, _kw("construction|home services|contractor")),
    ("Electrician", "HomeAndConstructionBusiness", _LOCAL_BUSINESS, _kw("electrician|electrical contractor|electrical services|wiring")),
    ("GeneralContractor", "HomeAndConstructionBusiness", _LOCAL_BUSINESS, _kw("general contractor|contractor|builder|construction company|remodeling")),
    ("HVACBusiness", "HomeAndConstructionBusiness", _LOCAL_BUSINESS, _kw("hvac|heating|air conditioning|ac repair|furnace")),
    ("HousePainter", "HomeAndConstructionBusiness", _LOCAL_BUSINESS, _kw("painter|house painter|painting contractor|interior painting")),
    ("Locksmith", "HomeAndConstructionBusiness", _LOCAL_BUSINESS, _kw("locksmith|lock service|key service|locks")),
    ("MovingCompany", "HomeAndConstructionBusiness", _LOCAL_BUSINESS, _kw("moving company|movers|relocation|moving service")),
    ("Plumber", "HomeAndConstructionBusiness", _LOCAL_BUSINESS, _kw("plumber|plumbing|plumbing service|drain cleaning")),
    ("RoofingContractor", "HomeAndConstructionBusiness", _LOCAL_BUSINESS, _kw("roofer|roofing|roofing contractor|roof repair")),
    # Entertainment
    ("EntertainmentBusiness", "LocalBusiness", _LOCAL_BUSINESS, _kw("entertainment|venue|amusement")),
    ("AdultEntertainment", "EntertainmentBusiness", _LOCAL_BUSINESS, _kw("adult entertainment|nightlife")),
    ("AmusementPark", "EntertainmentBusiness", _LOCAL_BUSINESS, _kw("amusement park|theme park|water park|fun park")),
    ("ArtGallery", "EntertainmentBusiness", _LOCAL_BUSINESS, _kw("art gallery|gallery|art studio|art exhibition")),
    ("Casino", "EntertainmentBusiness", _LOCAL_BUSINESS, _kw("casino|gambling|gaming|slots")),
    ("ComedyClub", "EntertainmentBusiness", _LOCAL_BUSINESS, _kw("comedy club|comedy|stand up|improv")),
    ("MovieTheater", "EntertainmentBusiness", _LOCAL_BUSINESS, _kw("movie theater|cinema|movies|film theater")),
    ("NightClub", "EntertainmentBusiness", _LOCAL_BUSINESS, _kw("nightclub|club|dance club|disco")),
    # Lodging
    ("LodgingBusiness", "LocalBusiness", _LODGING, _kw("lodging|accommodation|stay")),
    ("BedAndBreakfast", "LodgingBusiness", _LODGING, _kw("bed and breakfast|b&b|bnb|inn")),
    ("Campground", "LodgingBusiness", _LODGING, _kw("campground|camping|rv park|campsite")),
    ("Hostel", "LodgingBusiness", _LODGING, _kw("hostel|backpacker|budget accommodation")),
    ("Hotel", "LodgingBusiness", _LODGING, _kw("hotel|hotels|lodging|accommodation")),
    ("Motel", "LodgingBusiness", _LODGING, _kw("motel|motor hotel|motor lodge")),
    ("Resort", "LodgingBusiness", _LODGING, _kw("resort|vacation resort|beach resort|spa resort")),
    ("VacationRental", "LodgingBusiness", _LODGING, _kw("vacation rental|airbnb|vrbo|short term rental|holiday rental")),
    # Health and beauty
    ("HealthAndBeautyBusiness", "LocalBusiness", _LOCAL_BUSINESS, _kw("beauty|wellness|spa")),
    ("BeautySalon", "HealthAndBeautyBusiness", _LOCAL_BUSINESS, _kw("beauty salon|beauty parlor|beauty shop|makeup")),
    ("DaySpa", "HealthAndBeautyBusiness", _LOCAL_BUSINESS, _kw("day spa|spa|massage spa|wellness spa")),
    ("HairSalon", "HealthAndBeautyBusiness", _LOCAL_BUSINESS, _kw("hair salon|hairdresser|barber|hair stylist|barbershop|barber shop")),
    ("HealthClub", "HealthAndBeautyBusiness", _LOCAL_BUSINESS, _kw("health club|fitness club|athletic club")),
    ("NailSalon", "HealthAndBeautyBusiness", _LOCAL_BUSINESS, _kw("nail salon|nails|manicure|pedicure|nail spa")),
    ("TattooParlor", "HealthAndBeautyBusiness", _LOCAL_BUSINESS, _kw("tattoo|tattoo parlor|tattoo shop|tattoo studio|piercing")),
    # Financial
    ("FinancialService", "LocalBusiness", _LOCAL_BUSINESS, _kw("financial|finance|banking")),
    ("AccountingService", "FinancialService", _LOCAL_BUSINESS, _kw("accountant|accounting|cpa|bookkeeper|bookkeeping|tax preparation")),
    ("AutomatedTeller", "FinancialService", _LOCAL_BUSINESS, _kw("atm|automated teller|cash machine")),
    ("BankOrCreditUnion", "FinancialService", _LOCAL_BUSINESS, _kw("bank|credit union|banking|savings")),
    ("InsuranceAgency", "FinancialService", _LOCAL_BUSINESS, _kw("insurance|insurance agency|insurance agent|insurance broker")),
    # Emergency
    ("EmergencyService", "LocalBusiness", _LOCAL_BUSINESS, _kw("emergency|emergency services")),
    ("FireStation", "EmergencyService", _LOCAL_BUSINESS, _kw("fire station|fire department|firehouse")),
    ("Hospital", "EmergencyService", ("medicalSpecialty", "availableService"), _kw("hospital|medical center|health center")),
    ("PoliceStation", "EmergencyService", _LOCAL_BUSINESS, _kw("police station|police department|law enforcement")),
    # Professional services
    ("ProfessionalService", "LocalBusiness", _CONTACTABLE + ("areaServed",), _kw("professional|consulting|agency|consultant")),
    ("LegalService", "LocalBusiness", _CONTACTABLE, _kw("law firm|attorney|lawyer|legal services|legal")),
    ("RealEstateAgent", "LocalBusiness", _LOCAL_BUSINESS, _kw("real estate|realtor|real estate agent|property|realty")),
    ("TravelAgency", "LocalBusiness", _LOCAL_BUSINESS, _kw("travel agency|travel agent|tour operator|vacation planner")),
    ("SportsActivityLocation", "LocalBusiness", ("name", "description", "telephone", "address", "openingHours"), _kw("gym|yoga studio|fitness center|sports club|fitness|yoga|pilates|crossfit")),
    # Commerce
    ("Product", "Thing", ("name", "description", "image", "brand", "sku", "price", "priceCurrency", "availability", "aggregateRating"), _kw("ecommerce|retail|product|online store")),
    ("Service", "Thing", ("name", "description", "serviceType", "provider", "areaServed", "price"), _kw("service business|service provider")),
    ("Offer", "Thing", ("name", "description", "price", "priceCurrency", "availability", "url"), _kw("offer|deal|sale")),
    ("Person", "Thing", ("name", "jobTitle", "description", "image", "email", "telephone", "worksFor", "sameAs"), _kw("personal|portfolio|individual")),
    # Events
    ("Event", "Thing", _EVENT, _kw("event|events|happening")),
    ("BusinessEvent", "Event", _EVENT, _kw("business event|corporate event|networking|trade show")),
    ("ChildrensEvent", "Event", _EVENT, _kw("kids event|children event|family event")),
    ("ComedyEvent", "Event", _EVENT, _kw("comedy show|comedy event|stand up comedy")),
    ("CourseInstance", "Event", ("courseMode", "instructor"), _kw("class|workshop|course session|training session")),
    ("DanceEvent", "Event", _EVENT, _kw("dance event|dance party|ball|prom")),
    ("DeliveryEvent", "Event", _EVENT, _kw("delivery|shipping event")),
    ("EducationEvent", "Event", _EVENT, _kw("education event|school event|graduation|seminar")),
    ("EventSeries", "Event", _EVENT, _kw("event series|recurring event|festival series")),
    ("ExhibitionEvent", "Event", _EVENT, _kw("exhibition|expo|fair|show")),
    ("Festival", "Event", _EVENT, _kw("festival|fest|celebration|carnival")),
    ("FoodEvent", "Event", _EVENT, _kw("food event|food festival|tasting|culinary event")),
    ("Hackathon", "Event", _EVENT, _kw("hackathon|hack day|coding event|code jam")),
    ("LiteraryEvent", "Event", _EVENT, _kw("book signing|author reading|literary event|book launch")),
    ("MusicEvent", "Event", _EVENT, _kw("concert|music event|gig|recital|music festival")),
    ("PublicationEvent", "Event", _EVENT, _kw("book release|publication|launch event")),
    ("SaleEvent", "Event", _EVENT, _kw("sale|clearance|black friday|discount event")),
    ("ScreeningEvent", "Event", _EVENT, _kw("screening|film screening|movie premiere|premiere")),
    ("SocialEvent", "Event", _EVENT, _kw("party|gathering|social event|meetup")),
    ("SportsEvent", "Event", _EVENT, _kw("sports event|game|match|tournament|race")),
    ("TheaterEvent", "Event", _EVENT, _kw("theater|theatre|play|musical|drama|performance")),
    ("VisualArtsEvent", "Event", _EVENT, _kw("art show|gallery opening|art event|art exhibition")),
    # Supporting types
    ("Rating", "Thing", ("ratingValue", "bestRating", "worstRating"), ()),
    ("AggregateRating", "Rating", ("ratingValue", "bestRating", "worstRating", "ratingCount", "reviewCount"), _kw("rating|ratings")),
    ("ItemList", "Thing", ("name", "description", "numberOfItems", "itemListElement"), _kw("list|collection|catalog")),
    ("BreadcrumbList", "ItemList", ("itemListElement",), _kw("breadcrumb|navigation")),
    ("ContactPoint", "Thing", ("telephone", "email", "contactType", "areaServed", "availableLanguage"), ()),
    ("PostalAddress", "ContactPoint", ("streetAddress", "addressLocality", "addressRegion", "postalCode", "addressCountry"), ("address",)),
)

FOOD_ESTABLISHMENT_TYPES = frozenset(
    {
        "Restaurant",
        "FoodEstablishment",
        "Bakery",
        "CafeOrCoffeeShop",
        "Brewery",
        "Winery",
        "BarOrPub",
        "FastFoodRestaurant",
        "IceCreamShop",
    }
)
STORE_TYPES = frozenset(
    name for name, definition in SCHEMA_REGISTRY.items() if name == "Store" or definition.parent == "Store"
)
PROFESSIONAL_SERVICE_TYPES = frozenset(
    {
        "LegalService",
        "AccountingService",
        "FinancialService",
        "InsuranceAgency",
        "RealEstateAgent",
        "TravelAgency",
        "EmploymentAgency",
    }
)
SOFTWARE_TYPES = frozenset({"SoftwareApplication", "WebApplication", "MobileApplication"})

_DAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
_DAY_PREFIX = {day[:3].lower(): day for day in _DAYS}
_HOURS_RE = re.compile(r"(\w+)-(\w+)\s+(\d+(?::\d+)?(?:am|pm)?)-(\d+(?::\d+)?(?:am|pm)?)", re.IGNORECASE)
_TIME_RE = re.compile(r"(\d+)(?::(\d+))?\s*(am|pm)?", re.IGNORECASE)
_PRICE_CHARS_RE = re.compile(r"[^0-9.]")


def properties_with_inheritance(schema_type: str) -> Optional[tuple[str, ...]]:
    definition = SCHEMA_REGISTRY.get(schema_type)
    if definition is None:
        return None
    names = list(definition.properties)
    parent = definition.parent
    while parent and parent in SCHEMA_REGISTRY:
        parent_def = SCHEMA_REGISTRY[parent]
        for prop in parent_def.properties:
            if prop not in names:
                names.append(prop)
        parent = parent_def.parent
    return tuple(names)


def calculate_match_score(query: str, keywords: tuple[str, ...]) -> int:
    query_lower = query.lower().strip()
    query_words = query_lower.split()
    best = 0
    for keyword in keywords:
        keyword_lower = keyword.lower()
        if query_lower == keyword_lower:
            score = 100
        elif keyword_lower in query_lower:
            score = 50
        elif query_lower in keyword_lower:
            score = 40
        else:
            keyword_words = keyword_lower.split()
            matches = 0
            for q_word in query_words:
                if len(q_word) <= 2:
                    continue
                if any(k_word in q_word or q_word in k_word for k_word in keyword_words):
                    matches += 1
            score = matches * 20
        best = max(best, score)
    return best


def schema_depth(schema_type: str) -> int:
    depth = 0
    current = SCHEMA_REGISTRY.get(schema_type)
    while current is not None and current.parent and current.parent in SCHEMA_REGISTRY:
        depth += 1
        current = SCHEMA_REGISTRY[current.parent]
    return depth


def get_recommended_schema(business_type: str) -> str:
    """Best-scoring registry type for a free-text business type; deeper types win ties."""
    query = (business_type or "").lower().strip()
    best: Optional[tuple[int, int, str]] = None
    for name, definition in SCHEMA_REGISTRY.items():
        if not definition.keywords or "any" in definition.keywords:
            continue
        score = calculate_match_score(query, definition.keywords)
        if score <= 0:
            continue
        candidate = (score, schema_depth(name), name)
        if best is None or candidate[:2] > best[:2]:
            best = candidate
    if best is not None and best[0] >= 20:
        return best[2]
    return "LocalBusiness"


def build_json_ld(schema_type: str, content: dict[str, Any], base_url: Optional[str] = None) -> dict[str, Any]:
    properties = properties_with_inheritance(schema_type)
    if properties is None:
        return {"@context": SCHEMA_CONTEXT, "@type": schema_type, **content}

    json_ld: dict[str, Any] = {"@context": SCHEMA_CONTEXT, "@type": schema_type}
    if base_url:
        json_ld["url"] = base_url
    for prop in properties:
        value = content.get(prop)
        if value is not None and value != "":
            json_ld[prop] = value
    return json_ld


def _to_24_hour(value: str) -> str:
    match = _TIME_RE.search(value)
    if not match:
        return "09:00"
    hours = int(match.group(1))
    minutes = match.group(2) or "00"
    period = (match.group(3) or "").lower()
    if period == "pm" and hours != 12:
        hours += 12
    if period == "am" and hours == 12:
        hours = 0
    return f"{hours:02d}:{minutes}"


def _day_range(start: str, end: str) -> list[str]:
    start_idx = _DAYS.index(start)
    end_idx = _DAYS.index(end)
    if start_idx <= end_idx:
        return list(_DAYS[start_idx : end_idx + 1])
    return list(_DAYS[start_idx:]) + list(_DAYS[: end_idx + 1])


def parse_opening_hours(hours: str) -> list[dict[str, Any]]:
    """Parse ``"Mon-Fri 9am-6pm, Sat-Sun 10am-4pm"`` into OpeningHoursSpecification blocks."""
    specs: list[dict[str, Any]] = []
    for part in (p.strip() for p in hours.split(",")):
        match = _HOURS_RE.search(part)
        if not match:
            continue
        start_day = _DAY_PREFIX.get(match.group(1).lower()[:3])
        end_day = _DAY_PREFIX.get(match.group(2).lower()[:3])
        if start_day and end_day:
            specs.append(
                {
                    "@type": "OpeningHoursSpecification",
                    "dayOfWeek": _day_range(start_day, end_day),
                    "opens": _to_24_hour(match.group(3)),
                    "closes": _to_24_hour(match.group(4)),
                }
            )
    if specs:
        return specs
    return [
        {
            "@type": "OpeningHoursSpecification",
            "dayOfWeek": list(_DAYS[:5]),
            "opens": "09:00",
            "closes": "17:00",
        }
    ]


def _address_part(address: Optional[str], index: int) -> Optional[str]:
    if not address:
        return None
    parts = address.split(",")
    if index >= len(parts):
        return None
    return parts[index].strip() or None


def _review_rating() -> dict[str, Any]:
    return {"@type": "Rating", "ratingValue": 5, "bestRating": 5, "worstRating": 1}


def _price_digits(value: Optional[str], default: str) -> str:
    return _PRICE_CHARS_RE.sub("", value or "") or default


def build_schema_from_context(schema_type: str, facts: BusinessFacts, page_url: str) -> dict[str, Any]:
    flat: dict[str, Any] = {
        "name": facts.business_name,
        "description": facts.description,
        "image": facts.social_image or "",
    }
    if facts.email:
        flat["email"] = facts.email
    if facts.phone:
        flat["telephone"] = facts.phone
    if facts.price_range:
        flat["priceRange"] = facts.price_range

    schema = build_json_ld(schema_type, flat, page_url)

    if facts.address or facts.street_address:
        region = _address_part(facts.address, 2)
        postal_match = re.search(r"\d{5}", facts.address or "")
        schema["address"] = {
            "@type": "PostalAddress",
            "streetAddress": facts.street_address or _address_part(facts.address, 0),
            "addressLocality": facts.city or _address_part(facts.address, 1),
            "addressRegion": facts.state or (region.split(" ")[0] if region else None),
            "postalCode": facts.postal_code or (postal_match.group(0) if postal_match else None),
            "addressCountry": facts.country or "US",
        }

    if facts.geo is not None:
        schema["geo"] = {"@type": "GeoCoordinates", "latitude": facts.geo[0], "longitude": facts.geo[1]}

    if facts.hours:
        schema["openingHoursSpecification"] = parse_opening_hours(facts.hours)

    if facts.rating is not None:
        schema["aggregateRating"] = {
            "@type": "AggregateRating",
            "ratingValue": facts.rating[0],
            "bestRating": 5,
            "worstRating": 1,
            "reviewCount": facts.rating[1],
        }

    if facts.city or facts.state:
        schema["areaServed"] = {"@type": "City", "name": facts.city or _address_part(facts.address, 1)}

    if schema_type == "AboutPage":
        main_entity: dict[str, Any] = {
            "@type": "Organization",
            "name": facts.business_name,
            "description": facts.description,
        }
        if facts.site_url:
            main_entity["url"] = facts.site_url
        if facts.phone:
            main_entity["telephone"] = facts.phone
        if facts.email:
            main_entity["email"] = facts.email
        schema["mainEntity"] = main_entity

    if facts.testimonials:
        schema["review"] = [
            {
                "@type": "Review",
                "author": {"@type": "Person", "name": t.get("author") or f"Customer {i + 1}"},
                "reviewBody": t.get("quote", ""),
                "reviewRating": _review_rating(),
            }
            for i, t in enumerate(facts.testimonials)
        ]

    return schema


def build_breadcrumb_schema(page_name: str, page_url: str, site_url: str) -> dict[str, Any]:
    items: list[dict[str, Any]] = [{"@type": "ListItem", "position": 1, "name": "Home", "item": site_url or "/"}]
    if page_name.lower() != "homepage":
        items.append({"@type": "ListItem", "position": 2, "name": page_name, "item": page_url})
    return {"@context": SCHEMA_CONTEXT, "@type": "BreadcrumbList", "itemListElement": items}


def build_review_schemas(facts: BusinessFacts, *, today: Optional[date] = None) -> list[dict[str, Any]]:
    if not facts.testimonials:
        return []
    schema_type = get_recommended_schema(facts.business_type)
    published = (today or date.today()).isoformat()
    return [
        {
            "@context": SCHEMA_CONTEXT,
            "@type": "Review",
            "itemReviewed": {"@type": schema_type, "name": facts.business_name},
            "author": {"@type": "Person", "name": t.get("author") or f"Customer {i + 1}"},
            "reviewBody": t.get("quote", ""),
            "reviewRating": _review_rating(),
            "datePublished": published,
        }
        for i, t in enumerate(facts.testimonials)
    ]


def build_menu_schema(facts: BusinessFacts) -> dict[str, Any]:
    items = facts.menu_items or [
        {
            "name": service,
            "description": f"Delicious {service.lower()}",
            "price": facts.pricing[i]["price"] if i < len(facts.pricing) else "$12-$25",
        }
        for i, service in enumerate(facts.services)
    ]
    return {
        "@context": SCHEMA_CONTEXT,
        "@type": "Menu",
        "name": f"{facts.business_name} Menu",
        "description": f"Full menu for {facts.business_name}",
        "hasMenuSection": [
            {
                "@type": "MenuSection",
                "name": "Main Menu",
                "hasMenuItem": [
                    {
                        "@type": "MenuItem",
                        "name": item.get("name"),
                        "description": item.get("description"),
                        "offers": {
                            "@type": "Offer",
                            "price": _price_digits(item.get("price"), "15"),
                            "priceCurrency": "USD",
                        },
                    }
                    for item in items
                ],
            }
        ],
    }


def build_reservation_schema(facts: BusinessFacts) -> dict[str, Any]:
    return {
        "@context": SCHEMA_CONTEXT,
        "@type": "FoodEstablishmentReservation",
        "reservationFor": {
            "@type": get_recommended_schema(facts.business_type),
            "name": facts.business_name,
            "address": facts.address,
            "telephone": facts.phone,
        },
        "provider": {"@type": "Organization", "name": facts.business_name},
        "potentialAction": {
            "@type": "ReserveAction",
            "target": {
                "@type": "EntryPoint",
                "urlTemplate": f"{facts.site_url or ''}/reservations",
                "actionPlatform": [
                    "http://schema.org/DesktopWebPlatform",
                    "http://schema.org/MobileWebPlatform",
                ],
            },
            "result": {"@type": "FoodEstablishmentReservation", "name": "Table Reservation"},
        },
    }


def build_product_schemas(facts: BusinessFacts) -> list[dict[str, Any]]:
    return [
        {
            "@context": SCHEMA_CONTEXT,
            "@type": "Product",
            "name": item.get("name"),
            "description": item.get("description"),
            "offers": {
                "@type": "Offer",
                "price": _price_digits(item.get("price"), "0"),
                "priceCurrency": "USD",
                "availability": "https://schema.org/InStock",
            },
        }
        for item in facts.pricing
    ]


def build_service_schemas(facts: BusinessFacts) -> list[dict[str, Any]]:
    schemas: list[dict[str, Any]] = []
    for service in facts.services:
        schema: dict[str, Any] = {
            "@context": SCHEMA_CONTEXT,
            "@type": "Service",
            "name": service,
            "provider": {"@type": "Organization", "name": facts.business_name},
        }
        if facts.city:
            schema["areaServed"] = {"@type": "City", "name": facts.city}
        schemas.append(schema)
    return schemas


def build_software_schema(facts: BusinessFacts) -> dict[str, Any]:
    schema: dict[str, Any] = {
        "@context": SCHEMA_CONTEXT,
        "@type": "SoftwareApplication",
        "name": facts.business_name,
        "description": facts.description,
        "applicationCategory": "BusinessApplication",
        "operatingSystem": "Web",
    }
    if facts.pricing:
        schema["offers"] = {
            "@type": "AggregateOffer",
            "lowPrice": _price_digits(facts.pricing[0].get("price"), "0"),
            "highPrice": _price_digits(facts.pricing[-1].get("price"), "0"),
            "priceCurrency": "USD",
            "offerCount": len(facts.pricing),
        }
    if facts.rating is not None:
        schema["aggregateRating"] = {
            "@type": "AggregateRating",
            "ratingValue": facts.rating[0],
            "bestRating": 5,
            "reviewCount": facts.rating[1],
        }
    return schema


def build_faq_schema(faqs: list[dict[str, str]]) -> Optional[dict[str, Any]]:
    entries = [faq for faq in faqs if faq.get("question") and faq.get("answer")]
    if not entries:
        return None
    return {
        "@context": SCHEMA_CONTEXT,
        "@type": "FAQPage",
        "mainEntity": [
            {
                "@type": "Question",
                "name": faq["question"],
                "acceptedAnswer": {"@type": "Answer", "text": faq["answer"]},
            }
            for faq in entries
        ],
    }


@dataclass(frozen=True)
class PageSchemaSet:
    schema_type: str
    primary: dict[str, Any]
    breadcrumb: dict[str, Any]
    reviews: list[dict[str, Any]]
    additional: list[dict[str, Any]]

    @property
    def all(self) -> list[dict[str, Any]]:
        return [self.primary, self.breadcrumb, *self.reviews, *self.additional]


def build_page_schemas(facts: BusinessFacts, page_name: str, page_url: str, page_slug: str) -> PageSchemaSet:
    """Every JSON-LD block for one page: primary, breadcrumb, reviews, then category extras."""
    schema_type = get_recommended_schema(facts.business_type)
    primary = build_schema_from_context(schema_type, facts, page_url)
    breadcrumb = build_breadcrumb_schema(page_name, page_url, facts.site_url or "")
    reviews = build_review_schemas(facts)

    additional: list[dict[str, Any]] = []
    if schema_type in FOOD_ESTABLISHMENT_TYPES:
        if page_slug == "menu":
            additional.append(build_menu_schema(facts))
        if page_slug == "reservations":
            additional.append(build_reservation_schema(facts))
    if schema_type in STORE_TYPES and page_slug in ("products", "index"):
        additional.extend(build_product_schemas(facts))
    if schema_type in PROFESSIONAL_SERVICE_TYPES and page_slug in ("services", "index"):
        additional.extend(build_service_schemas(facts))
    if schema_type in SOFTWARE_TYPES and page_slug in ("index", "pricing"):
        additional.append(build_software_schema(facts))

    faq = build_faq_schema(facts.faqs)
    if faq is not None:
        additional.append(faq)

    return PageSchemaSet(
        schema_type=schema_type,
        primary=primary,
        breadcrumb=breadcrumb,
        reviews=reviews,
        additional=additional,
    )
