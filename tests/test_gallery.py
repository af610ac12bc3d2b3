from jucha_capture.gallery import EVENT_ADDED, EVENT_DISCARDED, EVENT_UPDATED
from jucha_capture.images import ImageState, new_image
from jucha_capture.recognition import RecognitionResult


def resolved(plate):
    return RecognitionResult(outcome=ImageState.RESOLVED, raw_text=plate, candidate=plate)


def failed(message="오류"):
    return RecognitionResult(outcome=ImageState.ERROR, error=message)


def test_images_are_listed_newest_first(gallery):
    for image_id in ("1", "2", "3"):
        gallery.add(new_image(b"x", image_id=image_id))
    assert [image.image_id for image in gallery.images()] == ["3", "2", "1"]


def test_subscribers_see_every_change(gallery):
    events = []
    gallery.subscribe(lambda event, image: events.append((event, image.state)))

    gallery.add(new_image(b"x", image_id="1"))
    gallery.begin_processing("1")
    gallery.complete("1", 1, resolved("ABC"))
    gallery.discard("1")

    assert events == [
        (EVENT_ADDED, ImageState.CAPTURING),
        (EVENT_UPDATED, ImageState.PROCESSING),
        (EVENT_UPDATED, ImageState.RESOLVED),
        (EVENT_DISCARDED, ImageState.RESOLVED),
    ]


def test_unsubscribe(gallery):
    events = []
    unsubscribe = gallery.subscribe(lambda event, image: events.append(event))
    unsubscribe()
    gallery.add(new_image(b"x", image_id="1"))
    assert events == []


def test_failing_subscriber_does_not_block_others(gallery):
    events = []

    def broken(event, image):
        raise RuntimeError("render failed")

    gallery.subscribe(broken)
    gallery.subscribe(lambda event, image: events.append(event))
    gallery.add(new_image(b"x", image_id="1"))

    assert events == [EVENT_ADDED]
    assert "1" in gallery


def test_complete_after_discard_is_ignored(gallery):
    gallery.add(new_image(b"x", image_id="1"))
    gallery.begin_processing("1")
    gallery.discard("1")

    assert gallery.complete("1", 1, resolved("ABC")) is False
    assert gallery.get("1") is None
    assert len(gallery) == 0


def test_stale_attempt_is_ignored(gallery):
    gallery.add(new_image(b"x", image_id="1"))
    gallery.begin_processing("1")
    gallery.complete("1", 1, failed())
    gallery.begin_processing("1")

    assert gallery.complete("1", 1, resolved("OLD")) is False
    assert gallery.get("1").state is ImageState.PROCESSING

    assert gallery.complete("1", 2, resolved("NEW")) is True
    assert gallery.get("1").plate == "NEW"


def test_duplicate_completion_is_ignored(gallery):
    gallery.add(new_image(b"x", image_id="1"))
    gallery.begin_processing("1")
    assert gallery.complete("1", 1, resolved("ABC"))
    assert not gallery.complete("1", 1, failed())
    assert gallery.get("1").state is ImageState.RESOLVED


def test_queries(gallery):
    for image_id in ("1", "2", "3"):
        gallery.add(new_image(b"x", image_id=image_id))
        gallery.begin_processing(image_id)
    gallery.complete("1", 1, resolved("AAA"))
    gallery.complete("2", 1, failed())

    assert gallery.first_resolved().image_id == "1"
    assert [i.image_id for i in gallery.retryable()] == ["2"]
    assert [i.image_id for i in gallery.in_flight()] == ["3"]
