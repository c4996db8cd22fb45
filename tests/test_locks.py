import threading

import pytest

from xv6sim.locks import Cpu, LockError, SleepLock, SpinLock


def test_push_pop_restores_interrupts():
    cpu = Cpu()
    cpu.push_cli()
    assert cpu.interrupts is False
    assert cpu.intena is True
    cpu.pop_cli()
    assert cpu.interrupts is True
    assert cpu.ncli == 0


def test_nested_push_needs_matching_pops():
    cpu = Cpu()
    cpu.push_cli()
    cpu.push_cli()
    cpu.pop_cli()
    assert cpu.interrupts is False
    cpu.pop_cli()
    assert cpu.interrupts is True


def test_interrupts_stay_off_if_they_were_off():
    cpu = Cpu(interrupts=False)
    cpu.push_cli()
    cpu.pop_cli()
    assert cpu.interrupts is False


def test_pop_without_push_raises():
    cpu = Cpu(interrupts=False)
    with pytest.raises(LockError, match="popcli"):
        cpu.pop_cli()
    assert cpu.ncli == 0


def test_pop_while_interruptible_raises():
    cpu = Cpu()
    with pytest.raises(LockError, match="interruptible"):
        cpu.pop_cli()


def test_spinlock_acquire_and_release():
    cpu, other = Cpu(0), Cpu(1)
    lock = SpinLock("test")
    lock.acquire(cpu)
    assert lock.holding(cpu)
    assert not lock.holding(other)
    assert lock.cpu is cpu
    assert cpu.interrupts is False
    assert lock.pcs
    lock.release(cpu)
    assert not lock.locked
    assert lock.cpu is None
    assert lock.pcs == ()
    assert cpu.interrupts is True


def test_spinlock_double_acquire_raises():
    cpu = Cpu()
    lock = SpinLock()
    lock.acquire(cpu)
    with pytest.raises(LockError, match="acquire"):
        lock.acquire(cpu)
    assert cpu.ncli == 1
    lock.release(cpu)
    assert cpu.ncli == 0


def test_spinlock_release_by_non_holder_raises():
    cpu, other = Cpu(0), Cpu(1)
    lock = SpinLock()
    with pytest.raises(LockError, match="release"):
        lock.release(cpu)
    lock.acquire(cpu)
    with pytest.raises(LockError, match="release"):
        lock.release(other)
    assert lock.holding(cpu)


def test_spinlock_held_context_manager():
    cpu = Cpu()
    lock = SpinLock()
    with lock.held(cpu):
        assert lock.holding(cpu)
    assert not lock.locked


def test_spinlock_mutual_exclusion_across_threads():
    lock = SpinLock("counter")
    counter = [0]
    rounds = 500
    cpus = [Cpu(i) for i in range(4)]
    held_checks = []

    def work(cpu):
        for _ in range(rounds):
            with lock.held(cpu):
                held_checks.append(lock.holding(cpu))
                value = counter[0]
                counter[0] = value + 1

    threads = [threading.Thread(target=work, args=(cpu,)) for cpu in cpus]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert counter[0] == 4 * rounds
    assert len(held_checks) == 4 * rounds
    assert all(held_checks)
    assert lock.locked is False or lock.locked == 0
    assert lock.cpu is None
    assert [cpu.ncli for cpu in cpus] == [0, 0, 0, 0]
    assert all(cpu.interrupts for cpu in cpus)


def test_sleeplock_holding():
    lock = SleepLock("sleep")
    lock.acquire(7)
    assert lock.holding(7)
    assert not lock.holding(8)
    lock.release()
    assert not lock.holding(7)
    assert lock.pid == 0
    assert lock.locked is False


def test_sleeplock_waiter_sleeps_until_release():
    lock = SleepLock()
    lock.acquire(1)
    got = threading.Event()

    def waiter():
        lock.acquire(2)
        got.set()

    t = threading.Thread(target=waiter)
    t.start()
    assert not got.wait(0.05)
    lock.release()
    assert got.wait(2)
    t.join()
    assert lock.holding(2)