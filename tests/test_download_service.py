from infrastructure.download_service import DownloadService, unique_target


def test_save_creates_directory_and_writes_bytes(tmp_path):
    out = tmp_path / "exports" / "nested"
    service = DownloadService(out)

    location = service.save("watermarked-a.png", b"abc")

    assert location == str(out / "watermarked-a.png")
    assert (out / "watermarked-a.png").read_bytes() == b"abc"


def test_existing_names_get_numbered(tmp_path):
    service = DownloadService(tmp_path)
    first = service.save("watermarked-a.png", b"1")
    second = service.save("watermarked-a.png", b"2")
    third = service.save("watermarked-a.png", b"3")

    assert first.endswith("watermarked-a.png")
    assert second.endswith("watermarked-a_1.png")
    assert third.endswith("watermarked-a_2.png")
    assert (tmp_path / "watermarked-a.png").read_bytes() == b"1"


def test_overwrite_replaces_existing_file(tmp_path):
    service = DownloadService(tmp_path, overwrite=True)
    service.save("watermarked-a.png", b"old")
    location = service.save("watermarked-a.png", b"new")

    assert location == str(tmp_path / "watermarked-a.png")
    assert (tmp_path / "watermarked-a.png").read_bytes() == b"new"
    assert len(list(tmp_path.iterdir())) == 1


def test_directory_components_are_stripped(tmp_path):
    service = DownloadService(tmp_path / "out")
    location = service.save("../../escape.png", b"x")
    assert location == str(tmp_path / "out" / "escape.png")
    assert not (tmp_path / "escape.png").exists()


def test_output_dir_can_be_changed(tmp_path):
    service = DownloadService(tmp_path / "a")
    service.set_output_dir(tmp_path / "b")
    assert service.output_dir == tmp_path / "b"
    service.save("f.png", b"x")
    assert (tmp_path / "b" / "f.png").exists()


def test_unique_target_without_collision(tmp_path):
    assert unique_target(tmp_path, "x.png") == tmp_path / "x.png"
