from datetime import datetime

from app.modules.categories.models.category import Category
from app.modules.posts.models.post import ContentStatus, Post
from app.modules.tags.models.tag import Tag


def test_categories_visible_in_order(client, db):
    db.add_all([
        Category(name="Eventos", slug="eventos", order=2),
        Category(name="Notícias", slug="noticias", order=1),
        Category(name="Oculta", slug="oculta", order=0, is_visible=False),
        Category(name="Apagada", slug="apagada", order=3, deleted_at=datetime(2024, 1, 1)),
    ])
    db.commit()

    res = client.get("/api/categories")
    assert res.status_code == 200, res.text
    data = res.json()["data"]
    assert [c["slug"] for c in data] == ["noticias", "eventos"]
    assert data[0]["post_count"] is None


def test_categories_with_published_post_count(client, db, make_user):
    author = make_user()
    news = Category(name="Notícias", slug="noticias", order=1)
    events = Category(name="Eventos", slug="eventos", order=2)
    db.add_all([news, events])
    db.commit()

    def post(slug, status=ContentStatus.PUBLISHED, deleted_at=None):
        return Post(
            title=slug, slug=slug, content="Texto", status=status, author_id=author.id,
            category_id=news.id, deleted_at=deleted_at,
        )

    db.add_all([
        post("a"),
        post("b"),
        post("rascunho", status=ContentStatus.DRAFT),
        post("apagado", deleted_at=datetime(2024, 1, 1)),
    ])
    db.commit()

    res = client.get("/api/categories", params={"includeCount": "true"})
    counts = {c["slug"]: c["post_count"] for c in res.json()["data"]}
    assert counts == {"noticias": 2, "eventos": 0}


def test_tags_sorted_by_name(client, db):
    db.add_all([
        Tag(name="Direitos", slug="direitos"),
        Tag(name="Carreira", slug="carreira"),
        Tag(name="Removida", slug="removida", deleted_at=datetime(2024, 1, 1)),
    ])
    db.commit()

    res = client.get("/api/tags")
    assert res.status_code == 200
    assert [t["slug"] for t in res.json()["data"]] == ["carreira", "direitos"]
