from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import IntegrityError

from app.core.errors import ValidationError
from app.core.text import slugify
from app.modules.audit.models.audit_log import AuditAction
from app.modules.categories.models.category import Category
from app.modules.media.models import Media, MediaType
from app.modules.posts.models.post import ContentStatus, Post
from app.modules.posts.services.post import _commit
from app.modules.tags.models.tag import Tag
from app.modules.user_management.models.user import UserRole
from conftest import entity_history

BASE_TIME = datetime(2024, 5, 1, 12, 0, 0)


@pytest.fixture
def author(make_user):
    return make_user(role=UserRole.AUTHOR)


@pytest.fixture
def category(db):
    category = Category(name="Notícias", slug="noticias", order=1)
    db.add(category)
    db.commit()
    return category


@pytest.fixture
def make_post(db, author):
    def _make_post(title, status=ContentStatus.PUBLISHED, category=None, days_ago=0, **kwargs):
        post = Post(
            title=title,
            slug=kwargs.pop("slug", slugify(title)),
            content=kwargs.pop("content", f"Conteúdo de {title}"),
            status=status,
            author_id=kwargs.pop("author_id", author.id),
            category_id=category.id if category else None,
            published_at=BASE_TIME - timedelta(days=days_ago) if status == ContentStatus.PUBLISHED else None,
            **kwargs,
        )
        db.add(post)
        db.commit()
        db.refresh(post)
        return post

    return _make_post


def titles(res):
    return [item["title"] for item in res.json()["data"]]


# Public listing

def test_list_published_only(client, make_post):
    make_post("Publicado")
    make_post("Rascunho", status=ContentStatus.DRAFT)
    make_post("Em revisão", status=ContentStatus.REVIEW)
    make_post("Removido", deleted_at=BASE_TIME)

    res = client.get("/api/posts")
    assert res.status_code == 200, res.text
    assert titles(res) == ["Publicado"]
    assert res.json()["pagination"] == {"page": 1, "limit": 10, "total": 1, "pages": 1}


def test_list_is_newest_first_and_paginated(client, make_post):
    for i in range(12):
        make_post(f"Post {i}", days_ago=i)

    res = client.get("/api/posts", params={"page": 3, "limit": 5})
    body = res.json()
    assert titles(res) == ["Post 10", "Post 11"]
    assert body["pagination"] == {"page": 3, "limit": 5, "total": 12, "pages": 3}

    first_page = client.get("/api/posts", params={"limit": 5})
    assert titles(first_page)[0] == "Post 0"


def test_list_filters_by_category_and_featured(client, make_post, category):
    make_post("Com categoria", category=category)
    make_post("Destaque", is_featured=True)
    make_post("Comum")

    assert titles(client.get("/api/posts", params={"category": "noticias"})) == ["Com categoria"]
    assert titles(client.get("/api/posts", params={"featured": "true"})) == ["Destaque"]
    assert titles(client.get("/api/posts", params={"category": "eventos"})) == []


# Slug lookups

def test_by_slug_counts_each_view(client, db, make_post):
    post = make_post("Bem-vindo ao novo site")
    updated_at = post.updated_at

    first = client.get(f"/api/posts/by-slug/{post.slug}")
    second = client.get(f"/api/posts/by-slug/{post.slug}")

    assert first.status_code == 200, first.text
    assert first.json()["data"]["view_count"] == 1
    assert second.json()["data"]["view_count"] == 2

    db.expire_all()
    stored = db.get(Post, post.id)
    assert stored.view_count == 2
    assert stored.updated_at == updated_at


@pytest.mark.parametrize("status", [ContentStatus.DRAFT, ContentStatus.REVIEW, ContentStatus.ARCHIVED])
def test_by_slug_hides_unpublished(client, db, make_post, status):
    post = make_post("Não publicado", status=status)
    res = client.get(f"/api/posts/by-slug/{post.slug}")
    assert res.status_code == 404
    assert res.json() == {"success": False, "error": "Post not found", "code": "not_found"}

    db.expire_all()
    assert db.get(Post, post.id).view_count == 0


def test_by_slug_hides_deleted(client, make_post):
    post = make_post("Apagado", deleted_at=BASE_TIME)
    assert client.get(f"/api/posts/by-slug/{post.slug}").status_code == 404


def test_slug_returns_related_posts(client, make_post, category):
    post = make_post("Principal", category=category)
    for i in range(4):
        make_post(f"Relacionado {i}", category=category, days_ago=i + 1)
    make_post("Rascunho relacionado", category=category, status=ContentStatus.DRAFT)
    make_post("Outra categoria")

    res = client.get(f"/api/posts/slug/{post.slug}")
    assert res.status_code == 200, res.text
    data = res.json()["data"]
    assert data["post"]["id"] == post.id
    assert data["post"]["view_count"] == 1
    assert [p["title"] for p in data["related_posts"]] == ["Relacionado 0", "Relacionado 1", "Relacionado 2"]


def test_slug_without_category_has_no_related(client, make_post):
    post = make_post("Sem categoria")
    make_post("Outro")
    res = client.get(f"/api/posts/slug/{post.slug}")
    assert res.json()["data"]["related_posts"] == []


# Creation

def test_create_requires_session(client):
    res = client.post("/api/posts", json={"title": "Título", "content": "Texto"})
    assert res.status_code == 401


def test_create_requires_title_and_content(client, login_as, author):
    login_as(author)
    assert client.post("/api/posts", json={"title": "Só título"}).status_code == 400
    assert client.post("/api/posts", json={"title": "   ", "content": "Texto"}).status_code == 400


def test_author_creates_draft(client, db, login_as, author, category):
    login_as(author)
    res = client.post(
        "/api/posts",
        json={"title": "Reunião Anual 2024!", "content": "palavra " * 250, "category_id": category.id},
    )
    assert res.status_code == 201, res.text
    data = res.json()["data"]
    assert data["slug"] == "reuni-o-anual-2024"
    assert data["status"] == "DRAFT"
    assert data["author_id"] == author.id
    assert data["reading_time"] == 2
    assert data["published_at"] is None
    assert data["category"]["slug"] == "noticias"

    history = entity_history(db, "Post", data["id"])
    assert [entry.action for entry in history] == [AuditAction.CREATE]
    assert history[0].user_id == author.id


def test_author_cannot_publish(client, login_as, author):
    login_as(author)
    res = client.post("/api/posts", json={"title": "Título", "content": "Texto", "status": "PUBLISHED"})
    assert res.status_code == 403
    assert res.json()["code"] == "insufficient_permission"


def test_editor_publish_stamps_published_at(client, make_user, login_as):
    login_as(make_user(role=UserRole.EDITOR))
    res = client.post("/api/posts", json={"title": "Publicado", "content": "Texto", "status": "PUBLISHED"})
    assert res.status_code == 201, res.text
    assert res.json()["data"]["published_at"] is not None
    assert client.get("/api/posts/by-slug/publicado").status_code == 200


def test_derived_slugs_get_suffixes(client, login_as, author):
    login_as(author)
    slugs = [
        client.post("/api/posts", json={"title": "Assembleia Geral", "content": "Texto"}).json()["data"]["slug"]
        for _ in range(3)
    ]
    assert slugs == ["assembleia-geral", "assembleia-geral-2", "assembleia-geral-3"]


def test_explicit_slug_collision_is_rejected(client, login_as, author, make_post):
    make_post("Existente")
    login_as(author)
    res = client.post("/api/posts", json={"title": "Outro", "content": "Texto", "slug": "existente"})
    assert res.status_code == 400


def test_deleted_post_keeps_its_slug(client, login_as, author, make_post):
    make_post("Antigo", deleted_at=BASE_TIME)
    login_as(author)
    res = client.post("/api/posts", json={"title": "Antigo", "content": "Texto"})
    assert res.json()["data"]["slug"] == "antigo-2"


def test_admin_may_set_author(client, make_user, login_as, author):
    login_as(make_user(role=UserRole.ADMIN))
    res = client.post("/api/posts", json={"title": "Por outro", "content": "Texto", "author_id": author.id})
    assert res.status_code == 201, res.text
    assert res.json()["data"]["author_id"] == author.id


def test_author_may_not_set_author(client, make_user, login_as, author):
    other = make_user(role=UserRole.AUTHOR)
    login_as(author)
    res = client.post("/api/posts", json={"title": "Por outro", "content": "Texto", "author_id": other.id})
    assert res.status_code == 403


def test_create_with_tags(client, db, login_as, author):
    tags = [Tag(name="Diplomacia", slug="diplomacia"), Tag(name="Carreira", slug="carreira")]
    db.add_all(tags)
    db.commit()

    login_as(author)
    res = client.post(
        "/api/posts",
        json={"title": "Com tags", "content": "Texto", "tag_ids": [tag.id for tag in tags]},
    )
    assert res.status_code == 201, res.text
    assert [tag["slug"] for tag in res.json()["data"]["tags"]] == ["carreira", "diplomacia"]

    unknown = client.post("/api/posts", json={"title": "Tag ruim", "content": "Texto", "tag_ids": ["nope"]})
    assert unknown.status_code == 400


# Admin listing and lookup

def test_admin_list_requires_publisher_role(client, login_as, author):
    assert client.get("/api/posts/admin").status_code == 401
    login_as(author)
    assert client.get("/api/posts/admin").status_code == 403


def test_admin_list_includes_drafts_and_filters(client, make_user, login_as, make_post, category):
    make_post("Rascunho sobre diplomacia", status=ContentStatus.DRAFT, category=category)
    make_post("Publicado", content="Texto sobre diplomacia")
    make_post("Outro assunto")
    make_post("Removido", deleted_at=BASE_TIME)
    login_as(make_user(role=UserRole.EDITOR))

    res = client.get("/api/posts/admin", params={"sortBy": "title", "sortOrder": "asc"})
    assert res.status_code == 200, res.text
    assert titles(res) == ["Outro assunto", "Publicado", "Rascunho sobre diplomacia"]

    assert sorted(titles(client.get("/api/posts/admin", params={"search": "diplomacia"}))) == [
        "Publicado",
        "Rascunho sobre diplomacia",
    ]
    assert titles(client.get("/api/posts/admin", params={"status": "DRAFT"})) == ["Rascunho sobre diplomacia"]
    assert titles(client.get("/api/posts/admin", params={"categoryId": category.id})) == ["Rascunho sobre diplomacia"]


def test_admin_search_is_literal(client, make_user, login_as, make_post):
    make_post("Assembleia")
    make_post("Reajuste de 10%")
    make_post("Plano_2025", status=ContentStatus.DRAFT)
    login_as(make_user(role=UserRole.EDITOR))

    assert titles(client.get("/api/posts/admin", params={"search": "%"})) == ["Reajuste de 10%"]
    assert titles(client.get("/api/posts/admin", params={"search": "_"})) == ["Plano_2025"]


def test_admin_list_rejects_unknown_sort_field(client, make_user, login_as):
    login_as(make_user(role=UserRole.ADMIN))
    res = client.get("/api/posts/admin", params={"sortBy": "password_hash"})
    assert res.status_code == 422


def test_get_by_id(client, login_as, author, make_post):
    draft = make_post("Rascunho", status=ContentStatus.DRAFT)
    deleted = make_post("Removido", deleted_at=BASE_TIME)

    assert client.get(f"/api/posts/{draft.id}").status_code == 401

    login_as(author)
    res = client.get(f"/api/posts/{draft.id}")
    assert res.status_code == 200
    assert res.json()["data"]["title"] == "Rascunho"
    assert client.get(f"/api/posts/{deleted.id}").status_code == 404


# Update

def test_author_updates_own_post(client, db, login_as, author, make_post):
    post = make_post("Original", status=ContentStatus.DRAFT)
    login_as(author)

    res = client.put(f"/api/posts/{post.id}", json={"title": "Revisado", "status": "REVIEW"})
    assert res.status_code == 200, res.text
    data = res.json()["data"]
    assert data["title"] == "Revisado"
    assert data["slug"] == "original"
    assert data["status"] == "REVIEW"

    actions = [entry.action for entry in entity_history(db, "Post", post.id)]
    assert actions == [AuditAction.UPDATE]


def test_author_cannot_edit_others_post(client, make_user, login_as, make_post):
    other = make_user(role=UserRole.AUTHOR)
    post = make_post("De outra pessoa", author_id=other.id)
    login_as(make_user(role=UserRole.AUTHOR))
    assert client.put(f"/api/posts/{post.id}", json={"title": "Meu"}).status_code == 403


def test_author_cannot_publish_on_update(client, login_as, author, make_post):
    post = make_post("Rascunho", status=ContentStatus.DRAFT)
    login_as(author)
    assert client.put(f"/api/posts/{post.id}", json={"status": "PUBLISHED"}).status_code == 403


def test_update_publish_and_slug_rules(client, make_user, login_as, make_post):
    make_post("Ocupado")
    post = make_post("Rascunho", status=ContentStatus.DRAFT)
    login_as(make_user(role=UserRole.EDITOR))

    assert client.put(f"/api/posts/{post.id}", json={"slug": "ocupado"}).status_code == 400
    # Keeping its own slug is not a collision
    assert client.put(f"/api/posts/{post.id}", json={"slug": "rascunho"}).status_code == 200

    res = client.put(f"/api/posts/{post.id}", json={"status": "PUBLISHED"})
    assert res.status_code == 200
    assert res.json()["data"]["published_at"] is not None


def test_update_replaces_tags(client, db, login_as, author, make_post):
    old, new = Tag(name="Antiga", slug="antiga"), Tag(name="Nova", slug="nova")
    db.add_all([old, new])
    db.commit()
    post = make_post("Com tags", status=ContentStatus.DRAFT)
    post.tags = [old]
    db.commit()

    login_as(author)
    res = client.put(f"/api/posts/{post.id}", json={"tag_ids": [new.id]})
    assert [tag["slug"] for tag in res.json()["data"]["tags"]] == ["nova"]


def test_update_missing_post(client, make_user, login_as):
    login_as(make_user(role=UserRole.ADMIN))
    assert client.put("/api/posts/missing", json={"title": "X"}).status_code == 404


# Soft delete

def test_editor_cannot_delete(client, make_user, login_as, make_post):
    post = make_post("Protegido")
    login_as(make_user(role=UserRole.EDITOR))
    assert client.delete(f"/api/posts/{post.id}").status_code == 403


def test_admin_soft_deletes(client, db, make_user, login_as, make_post):
    post = make_post("Para apagar")
    login_as(make_user(role=UserRole.ADMIN))

    res = client.delete(f"/api/posts/{post.id}")
    assert res.status_code == 200, res.text
    assert res.json()["success"] is True

    db.expire_all()
    stored = db.get(Post, post.id)
    assert stored is not None
    assert stored.deleted_at is not None
    assert stored.status == ContentStatus.DELETED

    assert client.get(f"/api/posts/by-slug/{post.slug}").status_code == 404
    assert titles(client.get("/api/posts")) == []
    assert client.delete(f"/api/posts/{post.id}").status_code == 404
    assert [e.action for e in entity_history(db, "Post", post.id)] == [AuditAction.DELETE]


def test_second_page_of_twenty_five(client, make_post):
    for i in range(25):
        make_post(f"Notícia {i:02d}", days_ago=i)

    res = client.get("/api/posts", params={"page": 2, "limit": 10})
    assert titles(res) == [f"Notícia {i:02d}" for i in range(10, 20)]
    assert res.json()["pagination"]["pages"] == 3


def test_featured_image_must_exist(client, db, login_as, author):
    image = Media(type=MediaType.IMAGE, file_name="capa.png", original_name="capa.png", url="/uploads/media/capa.png")
    removed = Media(
        type=MediaType.IMAGE,
        file_name="velha.png",
        original_name="velha.png",
        url="/uploads/media/velha.png",
        deleted_at=BASE_TIME,
    )
    db.add_all([image, removed])
    db.commit()
    login_as(author)

    missing = client.post("/api/posts", json={"title": "Sem capa", "content": "Texto", "featured_image_id": "nope"})
    assert missing.status_code == 400
    assert missing.json()["error"] == "Featured image not found"

    res = client.post("/api/posts", json={"title": "Com capa", "content": "Texto", "featured_image_id": image.id})
    assert res.status_code == 201, res.text
    assert res.json()["data"]["featured_image_id"] == image.id

    post_id = res.json()["data"]["id"]
    res = client.put(f"/api/posts/{post_id}", json={"featured_image_id": removed.id})
    assert res.status_code == 400


def test_commit_reports_constraint_failures():
    db = MagicMock()
    db.commit.side_effect = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: posts.slug"))
    with pytest.raises(ValidationError, match="Slug is already in use"):
        _commit(db)

    db.flush.side_effect = IntegrityError("INSERT", {}, Exception("FOREIGN KEY constraint failed"))
    with pytest.raises(ValidationError, match="missing or conflicting"):
        _commit(db, flush_only=True)
    assert db.rollback.call_count == 2


def test_page_number_is_bounded(client, make_post, make_user, login_as):
    make_post("Único")
    assert client.get("/api/posts", params={"page": 10_001}).status_code == 422

    res = client.get("/api/posts", params={"page": 10_000, "limit": 100})
    assert res.status_code == 200
    assert titles(res) == []

    login_as(make_user(role=UserRole.EDITOR))
    assert client.get("/api/posts/admin", params={"page": 10_001}).status_code == 422
