from taxdesk.reconcile.issuer_normalizer import IssuerNormalizer

ISSUERS = ["Dangote Cement Plc", "MTN Nigeria Communications Plc", "Nigerian Breweries Plc"]


def test_exact_match_ignores_case():
    n = IssuerNormalizer(ISSUERS)
    res = n.normalize("  mtn nigeria communications plc ")
    assert res["canonical"] == "MTN Nigeria Communications Plc"
    assert res["method"] == "exact"
    assert res["score"] == 1.0


def test_fuzzy_match():
    n = IssuerNormalizer(ISSUERS)
    res = n.normalize("DANGOTE CEMENT PLC.")
    assert res["canonical"] == "Dangote Cement Plc"
    assert res["method"] in ("exact", "fuzzy")
    res = n.normalize("Nigerian Breweries")
    assert res["canonical"] == "Nigerian Breweries Plc"
    assert res["method"] == "fuzzy"


def test_unknown_and_blank():
    n = IssuerNormalizer(ISSUERS)
    assert n.normalize("Completely Unknown Vendor XYZ")["canonical"] is None
    assert n.normalize("")["method"] == "none"
    assert n.canonical("Completely Unknown Vendor XYZ") == "Completely Unknown Vendor XYZ"


def test_add_deduplicates():
    n = IssuerNormalizer(["Zenith Bank", "zenith bank", ""])
    n.add("ZENITH BANK")
    n.add("Access Bank")
    assert n.issuer_list == ["Zenith Bank", "Access Bank"]
