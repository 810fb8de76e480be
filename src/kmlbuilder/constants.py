# Default configuration values
DEFAULT_MODE = 'accurate'
DEFAULT_PRECISION = 10
DEFAULT_SAMPLE_BUDGET = 1000
DEFAULT_AREA_METHOD = 'geodesic'
DEFAULT_BACKFILL_DISTANCE_KM = 0.2
DEFAULT_BACKFILL_TOLERANCE = 0.0005
DEFAULT_SEARCH_URL = 'https://nominatim.openstreetmap.org/search'
DEFAULT_USER_AGENT = 'kmlbuilder/1.0'
DEFAULT_SEARCH_TIMEOUT = 10
DEFAULT_SEARCH_LIMIT = 10

# Configuration sections
PROCESSING_SECTION_NAME = 'Processing'
BRIDGING_SECTION_NAME = 'Bridging'
BACKFILL_SECTION_NAME = 'Backfill'
SEARCH_SECTION_NAME = 'Search'

# Merge modes
ACCURATE = 'accurate'
APPROXIMATE = 'approximate'

# Area methods
GEODESIC = 'geodesic'
PLANAR = 'planar'

# Geometry rules
MIN_RING_POINTS = 4  # 3 distinct vertices + closing point
CLOSURE_TOLERANCE = 0.0001
MIN_EDIT_POINTS = 3

# KML
KML_NAMESPACE = 'http://www.opengis.net/kml/2.2'
DEFAULT_KML_NAME = 'Boundary'

# Output formats
KML_FORMAT = 'kml'
GEOJSON_FORMAT = 'geojson'
