import pytest

from reviewuplift.domain import DEFAULT_CONFIG, LinkConfiguration
from reviewuplift.domain.link_config import slug_of


def test_default_configuration():
    assert DEFAULT_CONFIG.business_name == "DONER HUT"
    assert DEFAULT_CONFIG.preview_text == "How was your experience with Doner Hut?"
    assert DEFAULT_CONFIG.welcome_title == "We value your opinion!"
    assert DEFAULT_CONFIG.welcome_text == "Share your dining experience and help us serve you better"
    assert DEFAULT_CONFIG.preview_image is None
    assert DEFAULT_CONFIG.logo_image is None
    assert DEFAULT_CONFIG.review_link_url == "https://go.reviewuplift.com/doner-hut"
    assert DEFAULT_CONFIG.is_review_gating_enabled is True
    assert DEFAULT_CONFIG.rating == 0


@pytest.mark.parametrize("rating", [-1, 6, True, "3", 2.5])
def test_rating_must_be_an_integer_between_0_and_5(rating):
    with pytest.raises(ValueError):
        LinkConfiguration(rating=rating)


def test_preview_edit_commits_all_four_fields_together():
    config = DEFAULT_CONFIG.with_preview("Pizza Place", "How was the pizza?", "Hi!", "Tell us")
    assert (config.business_name, config.preview_text, config.welcome_title, config.welcome_text) == (
        "Pizza Place", "How was the pizza?", "Hi!", "Tell us"
    )
    assert config.review_link_url == DEFAULT_CONFIG.review_link_url
    assert DEFAULT_CONFIG.business_name == "DONER HUT"


def test_link_slug_is_joined_to_base():
    config = DEFAULT_CONFIG.with_link_slug(" /pizza-place/ ", "https://go.reviewuplift.com/")
    assert config.review_link_url == "https://go.reviewuplift.com/pizza-place"
    assert slug_of(config.review_link_url, "https://go.reviewuplift.com/") == "pizza-place"


def test_slug_of_foreign_url_returns_it_whole():
    assert slug_of("https://g.page/r/abc", "https://go.reviewuplift.com/") == "https://g.page/r/abc"


def test_images_can_be_set_and_cleared():
    config = DEFAULT_CONFIG.with_preview_image("data:image/png;base64,AAAA").with_logo_image("data:image/png;base64,BBBB")
    assert config.preview_image.endswith("AAAA")
    assert config.logo_image.endswith("BBBB")
    cleared = config.with_preview_image(None)
    assert cleared.preview_image is None
    assert cleared.logo_image == config.logo_image
