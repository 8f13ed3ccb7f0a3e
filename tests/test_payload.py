import numpy as np
import pytest

from pose_stream.stream.payload import format_payload, parse_payload


def test_format_matches_wire_example():
    assert format_payload([1.0, 2.5], [0.1, -0.2, 0.3]) == "1.0,2.5#0.1,-0.2,0.3$"


def test_format_flattens_batched_arrays():
    pose = np.zeros((1, 4), dtype=np.float32)
    tran = np.array([[0.0, 1.0, 0.0]], dtype=np.float32)

    assert format_payload(pose, tran) == "0.0,0.0,0.0,0.0#0.0,1.0,0.0$"


def test_parse_recovers_values():
    pose, tran = parse_payload("0.12,0.34#0.01,-0.02,0.0$")

    assert pose == [0.12, 0.34]
    assert tran == [0.01, -0.02, 0.0]


def test_parse_reads_formatted_float32():
    pose = np.array([0.25, -1.5, 3.0], dtype=np.float32)
    tran = np.array([0.1, 0.2, 0.3], dtype=np.float32)

    parsed_pose, parsed_tran = parse_payload(format_payload(pose, tran))

    np.testing.assert_array_equal(np.asarray(parsed_pose, dtype=np.float32), pose)
    np.testing.assert_array_equal(np.asarray(parsed_tran, dtype=np.float32), tran)


@pytest.mark.parametrize("payload", ["1.0#2.0", "1.0,2.0$", "1#2#3$"])
def test_parse_rejects_malformed(payload):
    with pytest.raises(ValueError):
        parse_payload(payload)
