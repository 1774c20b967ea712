"""Unit tests for paging, sorting and statistics."""

from autoab_catalog.query.assembler import ResultAssembler, normalize_page
from autoab_catalog.query.paging import parse_int
from autoab_catalog.query.predicates import MATCH_ALL, FieldMatch
from autoab_catalog.schemas.query import SortField, SortOrder
from autoab_catalog.schemas.record import SearchField


class TestParseInt:
    def test_integers_pass_through(self):
        assert parse_int(7) == 7
        assert parse_int(None) is None

    def test_leading_integer(self):
        assert parse_int("25") == 25
        assert parse_int(" 25 ") == 25
        assert parse_int("25rows") == 25
        assert parse_int("-3") == -3

    def test_unparsable(self):
        assert parse_int("abc") is None
        assert parse_int("") is None
        assert parse_int("x5") is None


class TestNormalizePage:
    def test_defaults(self):
        page = normalize_page()
        assert page.page == 1
        assert page.limit == 10
        assert page.sort_by is SortField.DISEASE
        assert page.sort_order is SortOrder.ASC

    def test_unknown_sort_field_falls_back_to_disease(self):
        assert normalize_page(sort_by="password").sort_by is SortField.DISEASE

    def test_whitelisted_sort_field(self):
        assert normalize_page(sort_by="createdAt").sort_by is SortField.CREATED_AT

    def test_only_desc_is_descending(self):
        assert normalize_page(sort_order="desc").sort_order is SortOrder.DESC
        assert normalize_page(sort_order="DESC").sort_order is SortOrder.ASC
        assert normalize_page(sort_order="sideways").sort_order is SortOrder.ASC

    def test_clamping(self):
        assert normalize_page(page=0).page == 1
        assert normalize_page(page=-3).page == 1
        assert normalize_page(limit=-3).limit == 1
        assert normalize_page(limit=1000).limit == 100

    def test_zero_limit_means_default(self):
        assert normalize_page(limit=0).limit == 10
        assert normalize_page(limit="0").limit == 10

    def test_text_values(self):
        page = normalize_page(page="3", limit="25")
        assert page.page == 3
        assert page.limit == 25

    def test_unparsable_values_take_defaults(self):
        page = normalize_page(page="x", limit="abc")
        assert page.page == 1
        assert page.limit == 10

    def test_skip(self):
        assert normalize_page(page=3, limit=20).skip == 40


class TestAssemble:
    async def test_first_page(self, storage):
        result = await ResultAssembler(storage).assemble(MATCH_ALL, normalize_page())

        assert [r.id for r in result.records] == [
            "e007", "e004", "e005", "e003", "e008", "e006", "e001", "e002",
        ]
        assert result.pagination.total == 8
        assert result.pagination.pages == 1
        assert not result.pagination.has_next
        assert not result.pagination.has_prev

    async def test_middle_page(self, storage):
        result = await ResultAssembler(storage).assemble(MATCH_ALL, normalize_page(page=2, limit=3))

        assert [r.id for r in result.records] == ["e005", "e003", "e008"]
        assert result.pagination.pages == 3
        assert result.pagination.has_next
        assert result.pagination.has_prev

    async def test_page_past_the_end(self, storage):
        result = await ResultAssembler(storage).assemble(MATCH_ALL, normalize_page(page=9, limit=5))
        assert result.records == []
        assert result.pagination.total == 8
        assert not result.pagination.has_next

    async def test_no_matches(self, storage):
        predicate = FieldMatch(SearchField.DISEASE, "no such disease")
        result = await ResultAssembler(storage).assemble(predicate, normalize_page())
        assert result.records == []
        assert result.pagination.total == 0
        assert result.pagination.pages == 0

    async def test_absent_values_sort_last_both_ways(self, storage):
        assembler = ResultAssembler(storage)

        asc = await assembler.assemble(MATCH_ALL, normalize_page(sort_by="epitope"))
        assert [r.id for r in asc.records] == [
            "e008", "e004", "e005", "e002", "e001", "e003", "e006", "e007",
        ]

        desc = await assembler.assemble(
            MATCH_ALL, normalize_page(sort_by="epitope", sort_order="desc")
        )
        assert [r.id for r in desc.records] == [
            "e002", "e005", "e004", "e008", "e001", "e003", "e006", "e007",
        ]


class TestOverview:
    async def test_catalog_statistics(self, storage):
        stats = await ResultAssembler(storage).overview()

        assert stats.overview.total_entries == 8
        assert stats.overview.verified_entries == 4
        assert stats.overview.unique_diseases_count == 6
        assert stats.overview.unique_antibodies_count == 8
        assert stats.overview.unique_antigens_count == 8
        assert stats.overview.unique_uniprot_ids_count == 6

        assert [(v.value, v.count) for v in stats.disease_breakdown[:3]] == [
            ("Rheumatoid arthritis", 2),
            ("Systemic lupus erythematosus (SLE)", 2),
            ("Antiphospholipid syndrome", 1),
        ]
        assert len(stats.disease_breakdown) == 6
        assert len(stats.top_antibodies) == 8
        assert len(stats.top_antigens) == 8
