"""Internal constants shared across the library."""

DEFAULT_COLLECTION = "stations"
USER_AGENT = "pystations"

#: Mean earth radius used by the haversine distance.
EARTH_RADIUS_KM = 6371.0

#: Upper bound appended to a term for prefix range queries.
PREFIX_SENTINEL = "\uf8ff"

#: Value the document store replaces with its own commit time.
SERVER_TIMESTAMP = "REQUEST_TIME"

#: Casablanca, the default map center.
DEFAULT_CENTER: tuple[float, float] = (33.5731, -7.5898)
DEFAULT_ZOOM = 12
FOCUS_ZOOM = 15

# ------------------------------------------------------------------
# Wire field names
# ------------------------------------------------------------------

FIELD_NAME = "name"
FIELD_ADDRESS = "address"
FIELD_CITY = "city"
FIELD_SERVICES = "services"
FIELD_IS_ACTIVE = "isActive"
FIELD_CREATED_AT = "createdAt"
FIELD_UPDATED_AT = "updatedAt"
FIELD_CREATED_BY = "createdBy"
