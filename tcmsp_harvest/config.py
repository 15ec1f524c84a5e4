from typing import List

BASE_URL = "https://tcmsp-e.com"
SEARCH_URL = f"{BASE_URL}/tcmspsearch.php"
MOL2_URL = f"{BASE_URL}/tcmspmol"

DEFAULT_INTERVAL_SEC = 2.0
DEFAULT_TIMEOUT_MS = 30_000

UA = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)
HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "zh-CN,zh;q=0.9,en;q=0.8",
}

# Position of each embedded `data: [...]` array in page order.
HERB_NAMES_BLOCK = 0
COMPOUNDS_BLOCK = 0
TARGETS_BLOCK = 1

HERB_COLUMN = "herb_name"
COMPOUND_KEY = "MOL_ID"
TARGET_KEY = "target_ID"

COMPOUND_COLUMNS: List[str] = [
    HERB_COLUMN,
    "MOL_ID",
    "molecule_ID",
    "molecule_name",
    "mw",
    "alogp",
    "hdon",
    "hacc",
    "ob",
    "caco2",
    "bbb",
    "dl",
    "FASA-",
    "tpsa",
    "rbn",
    "halflife",
]
COMPOUND_NUMERIC = ["mw", "alogp", "hdon", "hacc", "ob", "caco2", "bbb", "dl", "FASA-", "tpsa", "rbn", "halflife"]

TARGET_COLUMNS: List[str] = [
    HERB_COLUMN,
    "MOL_ID",
    "molecule_ID",
    "molecule_name",
    "target_name",
    "target_ID",
    "drugbank_ID",
    "validated",
    "SVM_score",
    "RF_score",
]
TARGET_NUMERIC = ["SVM_score", "RF_score"]
# 1 = experimentally validated target, 0 = predicted.
TARGET_FLAGS = ["validated"]

OUTCOME_COLUMNS = [HERB_COLUMN, "found", "compounds", "targets", "message"]

# Usual TCMSP ADME screen: oral bioavailability >= 30 %, drug-likeness >= 0.18.
OB_THRESHOLD = 30.0
DL_THRESHOLD = 0.18

MOL2_SUFFIX = ".mol2"
CONVERT_COLUMNS = ["file_name", "smiles", "success", "message"]
DOWNLOAD_COLUMNS = ["mol_id", "path", "success", "message"]

TOKEN_ENV = "TCMSP_TOKEN"
INTERVAL_ENV = "TCMSP_INTERVAL"
