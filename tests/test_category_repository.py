"""
CategoryRepository 단위 테스트

테스트 대상:
- create(): 이름 검증, 대소문자 무시 중복 검사
- update(): 존재 여부, 중복, updated_at 갱신
- delete(): 삭제된 레코드 반환
- search(): 대소문자 무시 부분 문자열 검색, 저장 순서 유지
"""
import pytest

from publisher.errors import ConflictError, DuplicateNameError, NotFoundError, ValidationError


class TestCategoryCreate:
    """CategoryRepository.create() 테스트"""

    @pytest.mark.asyncio
    async def test_create_success(self, categories):
        category = await categories.create("Technology", "owner-1")

        assert category.id
        assert category.name == "Technology"
        assert category.owner_id == "owner-1"
        assert category.created_at == category.updated_at
        assert await categories.count() == 1

    @pytest.mark.asyncio
    async def test_name_is_trimmed(self, categories):
        category = await categories.create("  Design  ", "owner-1")
        assert category.name == "Design"

    @pytest.mark.asyncio
    async def test_duplicate_name_case_insensitive(self, categories):
        """"Tech" 생성 후 "tech" 생성 시 DuplicateNameError"""
        await categories.create("Tech", "owner-1")

        with pytest.raises(DuplicateNameError):
            await categories.create("tech", "owner-2")
        assert await categories.count() == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["", "   ", None])
    async def test_empty_name_rejected(self, categories, name):
        with pytest.raises(ValidationError):
            await categories.create(name, "owner-1")

    @pytest.mark.asyncio
    async def test_ids_are_unique(self, categories):
        first = await categories.create("One", "owner-1")
        second = await categories.create("Two", "owner-1")
        assert first.id != second.id

    @pytest.mark.asyncio
    async def test_explicit_id_conflict(self, categories):
        await categories.create("One", "owner-1", entity_id="c1")
        with pytest.raises(ConflictError):
            await categories.create("Two", "owner-1", entity_id="c1")

    @pytest.mark.asyncio
    async def test_returned_record_is_a_copy(self, categories):
        category = await categories.create("Original", "owner-1")
        category.name = "Mutated"

        stored = await categories.get_by_id(category.id)
        assert stored.name == "Original"


class TestCategoryUpdate:
    """CategoryRepository.update() 테스트"""

    @pytest.mark.asyncio
    async def test_update_not_found(self, categories):
        with pytest.raises(NotFoundError):
            await categories.update("missing", {"name": "X"})

    @pytest.mark.asyncio
    async def test_update_duplicate_of_other_category(self, categories):
        await categories.create("Tech", "owner-1")
        life = await categories.create("Life", "owner-1")

        with pytest.raises(DuplicateNameError):
            await categories.update(life.id, {"name": "TECH"})

    @pytest.mark.asyncio
    async def test_update_own_name_case_change_allowed(self, categories):
        tech = await categories.create("Tech", "owner-1")
        updated = await categories.update(tech.id, {"name": "TECH"})
        assert updated.name == "TECH"

    @pytest.mark.asyncio
    async def test_update_empty_name_rejected(self, categories):
        tech = await categories.create("Tech", "owner-1")
        with pytest.raises(ValidationError):
            await categories.update(tech.id, {"name": "  "})

    @pytest.mark.asyncio
    async def test_update_unknown_field_rejected(self, categories):
        tech = await categories.create("Tech", "owner-1")
        with pytest.raises(ValidationError):
            await categories.update(tech.id, {"color": "#fff"})

    @pytest.mark.asyncio
    async def test_round_trip_same_values(self, categories):
        """동일 값으로 update 시 created_at 유지, updated_at 증가"""
        created = await categories.create("Tech", "owner-1")

        updated = await categories.update(created.id, {"name": "Tech"})
        found = await categories.get_by_id(created.id)

        assert updated.created_at == created.created_at
        assert updated.updated_at > created.updated_at
        assert found == updated
        assert found.owner_id == "owner-1"


class TestCategoryDeleteAndSearch:
    """delete(), search() 테스트"""

    @pytest.mark.asyncio
    async def test_delete_returns_removed_record(self, categories):
        tech = await categories.create("Tech", "owner-1")

        removed = await categories.delete(tech.id)

        assert removed.id == tech.id
        assert await categories.get_by_id(tech.id) is None

    @pytest.mark.asyncio
    async def test_delete_missing(self, categories):
        with pytest.raises(NotFoundError):
            await categories.delete("missing")

    @pytest.mark.asyncio
    async def test_search_substring_case_insensitive(self, categories):
        await categories.create("Technology", "owner-1")
        await categories.create("Life", "owner-1")
        await categories.create("Biotech", "owner-1")

        result = await categories.search("TECH")

        # 정렬하지 않고 삽입 순서 유지
        assert [c.name for c in result] == ["Technology", "Biotech"]

    @pytest.mark.asyncio
    async def test_empty_search_returns_all_in_order(self, categories):
        for name in ["Zeta", "Alpha", "Mid"]:
            await categories.create(name, "owner-1")

        assert [c.name for c in await categories.search("")] == ["Zeta", "Alpha", "Mid"]

    @pytest.mark.asyncio
    async def test_get_by_name_ignores_case(self, categories):
        tech = await categories.create("Tech", "owner-1")
        assert (await categories.get_by_name("tECH")).id == tech.id
        assert await categories.get_by_name("nothing") is None

    @pytest.mark.asyncio
    async def test_unsupported_filter_rejected(self, categories):
        with pytest.raises(ValidationError):
            await categories.count(category_id="c1")
