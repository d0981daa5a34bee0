"""Constants shared across TaxonID providers."""

# Encyclopedia of Life
EOL_API_BASE = "https://eol.org/api"
EOL_SEARCH_URL = f"{EOL_API_BASE}/search/1.0.json"
EOL_PAGES_URL = EOL_API_BASE + "/pages/1.0/{page_id}.json"
EOL_HIERARCHY_ENTRY_URL = EOL_API_BASE + "/hierarchy_entries/1.0/{entry_id}.json"
EOL_PAGE_URI = "http://eol.org/pages/{page_id}/overview"

# Maps the long "nameAccordingTo" titles EOL returns to short source codes.
# Taxon concepts from any other hierarchy are not offered as candidates.
EOL_SOURCE_SHORT_NAMES = {
    "Species 2000 & ITIS Catalogue of Life: April 2013": "COL",
    "Integrated Taxonomic Information System (ITIS)": "ITIS",
    "GBIF Nub Taxonomy": "GBIF",
    "NCBI Taxonomy": "NCBI",
    "IUCN Red List (Species Assessed for Global Conservation)": "IUCN",
    "EOL Dynamic Hierarchy": "EOL",
    "iNaturalist": "INAT",
    "United Kingdom Species List": "UKSL",
    "USDA Plants data": "USDA",
    "North Pacific Species List": "NPSL",
    "South Pacific Species List": "SPSL",
}

# Wikimedia projects
WIKI_HOSTS = {
    "species": "species.wikimedia.org",
    "pedia": "{lang}.wikipedia.org",
    "commons": "commons.wikimedia.org",
}

# IUCN Red List API v3
IUCN_API_BASE = "https://apiv3.iucnredlist.org/api/v3"
IUCN_SPECIES_URL = IUCN_API_BASE + "/species/{name}"
IUCN_SPECIES_ID_URL = IUCN_API_BASE + "/species/id/{taxon_id}"
IUCN_HISTORY_URL = IUCN_API_BASE + "/species/history/id/{taxon_id}"
IUCN_COUNTRIES_URL = IUCN_API_BASE + "/species/countries/id/{taxon_id}"
IUCN_DETAILS_URI = "http://www.iucnredlist.org/details/{taxon_id}/0"

NOT_FOUND_MESSAGE = "Not found. Consider checking the spelling or alternate classification"
