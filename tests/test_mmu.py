import struct

import pytest

from xv6sim import mmu


def test_index_round_trip():
    va = mmu.pgaddr(0x123, 0x2AB, 0x456)
    assert mmu.pdx(va) == 0x123
    assert mmu.ptx(va) == 0x2AB
    assert va & 0xFFF == 0x456


def test_kernbase_directory_index():
    assert mmu.pdx(mmu.KERNBASE) == mmu.NPDENTRIES // 2
    assert mmu.ptx(mmu.KERNBASE) == 0


def test_page_rounding():
    assert mmu.pg_round_up(0) == 0
    assert mmu.pg_round_up(1) == mmu.PGSIZE
    assert mmu.pg_round_up(mmu.PGSIZE) == mmu.PGSIZE
    assert mmu.pg_round_down(mmu.PGSIZE + 1) == mmu.PGSIZE
    assert mmu.pg_round_down(mmu.PGSIZE - 1) == 0


def test_round_up_wraps_like_uint():
    assert mmu.pg_round_up(0xFFFFFFFF) == 0


def test_pte_split():
    pte = 0x00ABC000 | mmu.PTE_P | mmu.PTE_W | mmu.PTE_U
    assert mmu.pte_addr(pte) == 0x00ABC000
    assert mmu.pte_flags(pte) == mmu.PTE_P | mmu.PTE_W | mmu.PTE_U


def test_v2p_p2v():
    assert mmu.v2p(mmu.KERNLINK) == mmu.EXTMEM
    assert mmu.p2v(mmu.EXTMEM) == mmu.KERNLINK
    for pa in (0, mmu.EXTMEM, mmu.PHYSTOP):
        assert mmu.v2p(mmu.p2v(pa)) == pa


def test_kernel_stack_is_whole_pages():
    assert mmu.pg_round_up(mmu.KSTACKSIZE) == mmu.KSTACKSIZE
    assert mmu.pg_round_down(mmu.KSTACKSIZE) == mmu.KSTACKSIZE


def test_flat_code_segment_bytes():
    desc = mmu.segment(mmu.STA_X | mmu.STA_R, 0, 0xFFFFFFFF, 0)
    assert desc.pack() == bytes.fromhex("ffff0000009acf00")


def test_segment_fields():
    desc = mmu.segment(mmu.STA_W, 0x12345678, 0xFFFFFFFF, mmu.DPL_USER)
    assert desc.base_low == 0x5678
    assert desc.base_mid == 0x34
    assert desc.base_high == 0x12
    assert desc.dpl == mmu.DPL_USER
    assert desc.g == 1 and desc.db == 1


def test_segment16_limit_is_bytes():
    desc = mmu.segment16(mmu.STS_T32A, 0x1000, 0x67, 0)
    assert desc.limit_low == 0x67
    assert desc.limit_high == 0
    assert desc.g == 0
    low, _ = struct.unpack("<II", desc.pack())
    assert low == 0x67 | (0x1000 << 16)


def test_descriptor_field_range_checked():
    with pytest.raises(ValueError):
        mmu.SegmentDescriptor(0x10000, 0, 0, 0, 1, 0, 1, 0, 0, 0, 1, 1, 0)


def test_trap_gate():
    g = mmu.gate(True, mmu.SEG_KCODE << 3, 0x12345678, mmu.DPL_USER)
    assert g.kind == mmu.STS_TG32
    assert g.dpl == mmu.DPL_USER
    packed = g.pack()
    assert len(packed) == 8
    assert struct.unpack("<HH", packed[:4]) == (0x5678, mmu.SEG_KCODE << 3)
    assert struct.unpack("<H", packed[6:])[0] == 0x1234


def test_interrupt_gate_type():
    g = mmu.gate(False, mmu.SEG_KCODE << 3, 0, 0)
    assert g.kind == mmu.STS_IG32
    assert g.present == 1 and g.s == 0